from dataclasses import dataclass

import click

from scripts.manage.panic import log_position
from scripts.utils import log
from scripts.utils.abis import STRATEGY_ABI
from scripts.utils.address import validate_address
from scripts.utils.cli import abort_on_failure, network_options, open_client
from scripts.utils.operations import OperationResult, ensure_owner, read_optional, report


@dataclass(frozen=True)
class UnpauseRequest:
    strategy: str

    @classmethod
    def build(cls, strategy):
        return cls(strategy=validate_address("strategy address", strategy))


def unpause(client, request: UnpauseRequest, gas_limit=5_000_000):
    """
    Unpauses a single asset strategy after a panic. The strategy puts its
    idle funds back to work on the next deposit or harvest.
    """
    strategy = client.at(STRATEGY_ABI, request.strategy)

    if not strategy.functions.paused().call():
        return OperationResult.skipped("unpause", "Strategy is not paused.")

    keeper = read_optional("keeper", lambda: strategy.functions.keeper().call())
    ensure_owner(strategy, client.address, also_allowed=[keeper] if keeper else [])

    log_position(strategy, "before unpause")
    receipt = client.transact(strategy.functions.unpause(), gas_limit=gas_limit)

    paused = read_optional("pause status", lambda: strategy.functions.paused().call())
    if paused:
        log.warn("Strategy still reads as paused after unpause")
    log_position(strategy, "after unpause")

    return OperationResult.done("unpause", receipt, "Strategy is unpaused")


@click.command()
@network_options
@click.option("--strategy", envvar="STRATEGY_ADDRESS", help="Strategy address.")
@abort_on_failure
def cli(network, rpc, account, strategy):
    """Unpauses a Bonzo supply or leveraged strategy."""
    request = UnpauseRequest.build(strategy)

    _, client = open_client(network.lower(), account, rpc)
    log.h1("Unpause strategy")
    report(unpause(client, request))


if __name__ == "__main__":
    cli()
