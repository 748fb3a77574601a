from dataclasses import dataclass

import click

from scripts.utils import log
from scripts.utils.abis import STRATEGY_ABI
from scripts.utils.address import same_address, validate_address
from scripts.utils.cli import abort_on_failure, network_options, open_client
from scripts.utils.operations import OperationResult, ensure_owner, read_optional, report


@dataclass(frozen=True)
class SetUnirouterRequest:
    strategy: str
    router: str

    @classmethod
    def build(cls, strategy, router):
        return cls(
            strategy=validate_address("strategy address", strategy),
            router=validate_address("router address", router),
        )


def set_unirouter(client, request: SetUnirouterRequest, gas_limit=1_000_000):
    strategy = client.at(STRATEGY_ABI, request.strategy)

    current = strategy.functions.unirouter().call()
    log.info(f"Current unirouter: {current}")
    if same_address(current, request.router):
        return OperationResult.skipped("setUnirouter", f"Unirouter is already {request.router}.")

    ensure_owner(strategy, client.address)

    receipt = client.transact(strategy.functions.setUnirouter(request.router), gas_limit=gas_limit)

    updated = read_optional("new unirouter", lambda: strategy.functions.unirouter().call())
    if updated is not None and not same_address(updated, request.router):
        log.warn(f"Unirouter reads {updated} after the update")

    return OperationResult.done("setUnirouter", receipt, f"Unirouter is now {request.router}")


@click.command()
@network_options
@click.option("--strategy", envvar="STRATEGY_ADDRESS", help="Strategy address.")
@click.option("--router", envvar="NEW_UNIROUTER", help="New swap router address.")
@abort_on_failure
def cli(network, rpc, account, strategy, router):
    """Points a strategy at a new swap router."""
    request = SetUnirouterRequest.build(strategy, router)

    blueprint, client = open_client(network.lower(), account, rpc)
    log.h1("Set unirouter")
    report(set_unirouter(client, request, gas_limit=blueprint.PARAMS["GAS_LIMIT_ADMIN"]))


if __name__ == "__main__":
    cli()
