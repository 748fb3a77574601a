from dataclasses import dataclass
from typing import Optional

import click

from scripts.utils import log
from scripts.utils.abis import CLM_STRATEGY_ABI, UNIV3_POOL_ABI, VAULT_ABI
from scripts.utils.address import validate_address
from scripts.utils.cli import abort_on_failure, network_options, open_client
from scripts.utils.deploy_args import BluePrint
from scripts.utils.operations import (OperationResult, PreconditionFailed, ensure_owner, read_optional, report,
                                      to_weibars)

INT24_RANGE = (-(2 ** 23), 2 ** 23 - 1)
INT56_RANGE = (-(2 ** 55), 2 ** 55 - 1)


def _ensure_int(label, value, bounds):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{label} must be an integer, got {value!r}")
    if not bounds[0] <= value <= bounds[1]:
        raise ValueError(f"{label} {value} does not fit in its solidity type")
    return value


@dataclass(frozen=True)
class PositionWidthRequest:
    """`target` is a strategy, or a vault when `is_vault` is set."""

    target: str
    is_vault: bool = False
    position_width: Optional[int] = None
    max_tick_deviation: Optional[int] = None
    force: bool = False

    @classmethod
    def build(cls, target, is_vault=False, position_width=None, max_tick_deviation=None, force=False):
        return cls(
            target=validate_address("vault address" if is_vault else "strategy address", target),
            is_vault=is_vault,
            position_width=_ensure_int("positionWidth", position_width, INT24_RANGE),
            max_tick_deviation=_ensure_int("maxTickDeviation", max_tick_deviation, INT56_RANGE),
            force=force,
        )


def resolve_strategy(client, request: PositionWidthRequest):
    if not request.is_vault:
        return request.target
    strategy = client.at(VAULT_ABI, request.target).functions.strategy().call()
    log.info(f"Vault {request.target} -> strategy {strategy}")
    return strategy


def clamp_deviation(deviation, tick_spacing):
    # the strategy requires maxTickDeviation < 4 * tickSpacing
    if tick_spacing is None or deviation < tick_spacing * 4:
        return deviation
    clamped = tick_spacing * 4 - 1
    log.warn(f"Requested deviation {deviation} >= 4 * tickSpacing, clamping to {clamped}")
    return clamped


def update_position_width(client, request: PositionWidthRequest, gas_limit=2_500_000):
    """
    Updates `maxTickDeviation` and then `positionWidth` of a CLM strategy.
    Values equal to the current ones are left alone. Changing the width
    re-mints both positions, so the strategy is funded with `2 * getMintFee()`
    first and a pool that is not calm refuses unless `force` is set.
    Returns one result per setting.
    """
    if request.position_width is None and request.max_tick_deviation is None:
        return [OperationResult.skipped("updatePositionWidth", "Neither positionWidth nor maxTickDeviation given.")]

    address = resolve_strategy(client, request)
    strategy = client.at(CLM_STRATEGY_ABI, address)

    current_width = strategy.functions.positionWidth().call()
    current_deviation = read_optional("maxTickDeviation", lambda: strategy.functions.maxTickDeviation().call())
    log.info(f"Current positionWidth: {current_width}, maxTickDeviation: {current_deviation}")

    deviation = request.max_tick_deviation
    if deviation is not None:
        pool = read_optional("pool", lambda: strategy.functions.pool().call())
        tick_spacing = None
        if pool is not None:
            tick_spacing = read_optional(
                "pool tickSpacing", lambda: client.at(UNIV3_POOL_ABI, pool).functions.tickSpacing().call())
        deviation = clamp_deviation(deviation, tick_spacing)

    width_changes = request.position_width is not None and request.position_width != current_width
    deviation_changes = deviation is not None and deviation != current_deviation

    if not width_changes and not deviation_changes:
        return [OperationResult.skipped("updatePositionWidth", "positionWidth and maxTickDeviation already set.")]

    ensure_owner(strategy, client.address)

    if width_changes:
        calm = read_optional("calm status", lambda: strategy.functions.isCalm().call())
        if calm is False and not request.force:
            raise PreconditionFailed(f"Pool of {address} is not calm, use --force to try anyway (may revert)")

    results = []
    if deviation_changes:
        log.h3(f"Setting maxTickDeviation to {deviation}")
        receipt = client.transact(strategy.functions.setDeviation(deviation), gas_limit=1_000_000)
        results.append(OperationResult.done("setDeviation", receipt, f"maxTickDeviation is now {deviation}"))
    else:
        results.append(OperationResult.skipped("setDeviation", "maxTickDeviation unchanged."))

    if width_changes:
        mint_fee = strategy.functions.getMintFee().call()
        client.send_value(address, to_weibars(mint_fee * 2), gas_limit=1_000_000)
        log.h3(f"Setting positionWidth to {request.position_width}")
        receipt = client.transact(strategy.functions.setPositionWidth(request.position_width), gas_limit=gas_limit)
        results.append(
            OperationResult.done("setPositionWidth", receipt, f"positionWidth is now {request.position_width}"))
    else:
        results.append(OperationResult.skipped("setPositionWidth", "positionWidth unchanged."))

    return results


@click.command()
@network_options
@click.option("--strategy", envvar="STRATEGY_ADDRESS", default=None, help="CLM strategy address.")
@click.option("--vault", envvar="VAULT_ADDRESS", default=None, help="CLM vault address, its strategy is looked up.")
@click.option("--name", default=None, help="Configured CLM vault name, uses its configured width and deviation.")
@click.option("--width", type=int, default=None, help="New positionWidth.")
@click.option("--deviation", type=int, default=None, help="New maxTickDeviation.")
@click.option("--force", is_flag=True, default=False, help="Try setPositionWidth even when the pool is not calm.")
@abort_on_failure
def cli(network, rpc, account, strategy, vault, name, width, deviation, force):
    """Updates positionWidth and maxTickDeviation of a SaucerSwap CLM strategy."""
    network = network.lower()
    if name:
        configured = {v["name"]: v for v in BluePrint(network).CLM_VAULTS}
        if name not in configured:
            raise click.BadParameter(f"`{name}` is not a configured CLM vault on {network}", param_hint="--name")
        entry = configured[name]
        request = PositionWidthRequest.build(
            entry["vault"],
            is_vault=True,
            position_width=width if width is not None else entry["position_width"],
            max_tick_deviation=deviation if deviation is not None else entry["max_tick_deviation"],
            force=force,
        )
    else:
        request = PositionWidthRequest.build(
            vault or strategy,
            is_vault=bool(vault),
            position_width=width,
            max_tick_deviation=deviation,
            force=force,
        )

    _, client = open_client(network, account, rpc)

    log.h1("Update position width")
    for result in update_position_width(client, request):
        report(result)


if __name__ == "__main__":
    cli()
