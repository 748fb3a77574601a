from dataclasses import dataclass

import click

from scripts.utils import log
from scripts.utils.abis import CLM_STRATEGY_ABI, STRATEGY_ABI
from scripts.utils.address import validate_address
from scripts.utils.cli import abort_on_failure, network_options, open_client
from scripts.utils.operations import OperationResult, ensure_owner, read_optional, report


@dataclass(frozen=True)
class PanicRequest:
    strategy: str
    min_amount0: int = 0
    min_amount1: int = 0
    single_asset: bool = False

    @classmethod
    def build(cls, strategy, min_amount0=0, min_amount1=0, single_asset=False):
        for label, amount in (("minAmount0", min_amount0), ("minAmount1", min_amount1)):
            if int(amount) < 0:
                raise ValueError(f"{label} must not be negative, got {amount}")
        if single_asset and (int(min_amount0) or int(min_amount1)):
            raise ValueError("Single asset strategies take no minimum amounts")
        return cls(
            strategy=validate_address("strategy address", strategy),
            min_amount0=int(min_amount0),
            min_amount1=int(min_amount1),
            single_asset=bool(single_asset),
        )


def _log_balances(strategy, when):
    balances = read_optional("strategy balances", lambda: strategy.functions.balances().call())
    if balances is not None:
        log.info(f"Strategy balances {when}: token0 {balances[0]}, token1 {balances[1]}")
    return balances


def log_position(strategy, when):
    """Logs the position of a single asset (supply or leveraged) strategy."""
    total = read_optional("strategy balance", lambda: strategy.functions.balanceOf().call())
    if total is None:
        return None
    want = read_optional("want balance", lambda: strategy.functions.balanceOfWant().call())
    pool = read_optional("pool balance", lambda: strategy.functions.balanceOfPool().call())
    log.info(f"Strategy position {when}: total {total}, want {want}, in pool {pool}")
    return total


def panic(client, request: PanicRequest, gas_limit=5_000_000):
    """
    Pulls all funds out of a strategy and pauses it.

    CLM strategies take the minimum token amounts out of the pool, single
    asset strategies (Bonzo supply and leveraged) take no arguments.
    Only the owner or the keeper can panic.
    """
    abi = STRATEGY_ABI if request.single_asset else CLM_STRATEGY_ABI
    strategy = client.at(abi, request.strategy)
    show = log_position if request.single_asset else _log_balances

    if strategy.functions.paused().call():
        return OperationResult.skipped("panic", "Strategy is already paused.")

    keeper = read_optional("keeper", lambda: strategy.functions.keeper().call())
    ensure_owner(strategy, client.address, also_allowed=[keeper] if keeper else [])

    show(strategy, "before panic")

    if request.single_asset:
        log.h3(f"Calling panic() on {request.strategy}")
        call = strategy.functions.panic()
    else:
        log.h3(f"Calling panic({request.min_amount0}, {request.min_amount1}) on {request.strategy}")
        call = strategy.functions.panic(request.min_amount0, request.min_amount1)
    receipt = client.transact(call, gas_limit=gas_limit)

    paused = read_optional("pause status", lambda: strategy.functions.paused().call())
    if paused is False:
        log.warn("Strategy does not read as paused after panic")
    show(strategy, "after panic")

    return OperationResult.done("panic", receipt, "Strategy is paused, funds pulled back to the strategy")


@click.command()
@network_options
@click.option("--strategy", envvar="STRATEGY_ADDRESS", help="Strategy address.")
@click.option("--min-amount0", default=0, type=int, show_default=True, help="Minimum token0 out of the pool.")
@click.option("--min-amount1", default=0, type=int, show_default=True, help="Minimum token1 out of the pool.")
@click.option("--single-asset", is_flag=True, default=False,
              help="Bonzo supply or leveraged strategy, whose panic() takes no minimums.")
@abort_on_failure
def cli(network, rpc, account, strategy, min_amount0, min_amount1, single_asset):
    """Emergency exit of a strategy."""
    request = PanicRequest.build(strategy, min_amount0, min_amount1, single_asset)

    _, client = open_client(network.lower(), account, rpc)
    log.h1("Panic strategy")
    report(panic(client, request))


if __name__ == "__main__":
    cli()
