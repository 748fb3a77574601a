from dataclasses import dataclass

import click

from scripts.utils import log
from scripts.utils.abis import STRATEGY_ABI
from scripts.utils.address import validate_address
from scripts.utils.chain import TransactionFailed
from scripts.utils.cli import abort_on_failure, network_options, open_client
from scripts.utils.operations import OperationResult, ensure_owner, report

# HTS response TOKEN_ALREADY_ASSOCIATED_TO_ACCOUNT, as relayed in revert reasons
ALREADY_ASSOCIATED_MARKERS = ("TOKEN_ALREADY_ASSOCIATED", "already associated")


@dataclass(frozen=True)
class AssociateTokenRequest:
    strategy: str
    token: str

    @classmethod
    def build(cls, strategy, token):
        return cls(
            strategy=validate_address("strategy address", strategy),
            token=validate_address("token address", token),
        )


def already_associated(error: TransactionFailed):
    text = f"{error.reason or ''} {error}".lower()
    return any(marker.lower() in text for marker in ALREADY_ASSOCIATED_MARKERS)


def associate_token(client, request: AssociateTokenRequest, gas_limit=1_000_000):
    """Associates a Hedera token with a strategy so it can hold it."""
    strategy = client.at(STRATEGY_ABI, request.strategy)
    ensure_owner(strategy, client.address)

    log.h3(f"Associating token {request.token} with {request.strategy}")
    try:
        receipt = client.transact(strategy.functions.associateToken(request.token), gas_limit=gas_limit)
    except TransactionFailed as e:
        if not already_associated(e):
            raise
        return OperationResult.skipped("associateToken", f"{request.token} is already associated.")
    return OperationResult.done("associateToken", receipt, f"{request.token} associated")


@click.command()
@network_options
@click.option("--strategy", envvar="STRATEGY_ADDRESS", help="Strategy address.")
@click.option("--token", envvar="TOKEN_ADDRESS", help="HTS token address.")
@abort_on_failure
def cli(network, rpc, account, strategy, token):
    """Associates an HTS token with a strategy."""
    request = AssociateTokenRequest.build(strategy, token)

    blueprint, client = open_client(network.lower(), account, rpc)
    log.h1("Associate token")
    report(associate_token(client, request, gas_limit=blueprint.PARAMS["GAS_LIMIT_ADMIN"]))


if __name__ == "__main__":
    cli()
