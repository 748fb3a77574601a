from dataclasses import dataclass

import click

from scripts.utils import log
from scripts.utils.abis import STRATEGY_ABI
from scripts.utils.address import same_address, validate_address
from scripts.utils.cli import abort_on_failure, network_options, open_client
from scripts.utils.operations import OperationResult, ensure_owner, read_optional, report


@dataclass(frozen=True)
class SetKeeperRequest:
    strategy: str
    keeper: str

    @classmethod
    def build(cls, strategy, keeper):
        return cls(
            strategy=validate_address("strategy address", strategy),
            keeper=validate_address("keeper address", keeper),
        )


def set_keeper(client, request: SetKeeperRequest, gas_limit=1_000_000):
    strategy = client.at(STRATEGY_ABI, request.strategy)

    current = strategy.functions.keeper().call()
    log.info(f"Current keeper: {current}")
    if same_address(current, request.keeper):
        return OperationResult.skipped("setKeeper", f"Keeper is already {request.keeper}.")

    # owner or current keeper
    ensure_owner(strategy, client.address, also_allowed=[current])

    log.h3(f"Setting keeper of {request.strategy} to {request.keeper}")
    receipt = client.transact(strategy.functions.setKeeper(request.keeper), gas_limit=gas_limit)

    updated = read_optional("new keeper", lambda: strategy.functions.keeper().call())
    if updated is not None and not same_address(updated, request.keeper):
        log.warn(f"Keeper reads {updated} after the update")

    return OperationResult.done("setKeeper", receipt, f"Keeper is now {request.keeper}")


@click.command()
@network_options
@click.option("--strategy", envvar="STRATEGY_ADDRESS", help="Strategy contract address.")
@click.option("--keeper", envvar="KEEPER_ADDRESS", help="Address of the new keeper.")
@abort_on_failure
def cli(network, rpc, account, strategy, keeper):
    """Sets the keeper of a strategy."""
    request = SetKeeperRequest.build(strategy, keeper)

    blueprint, client = open_client(network.lower(), account, rpc)
    log.h1("Set keeper")
    report(set_keeper(client, request, gas_limit=blueprint.PARAMS["GAS_LIMIT_ADMIN"]))


if __name__ == "__main__":
    cli()
