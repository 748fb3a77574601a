from dataclasses import dataclass

import click

from scripts.utils import log
from scripts.utils.abis import ERC20_ABI
from scripts.utils.address import validate_address
from scripts.utils.cli import abort_on_failure, network_options, open_client
from scripts.utils.operations import OperationResult, read_optional, report


@dataclass(frozen=True)
class ApproveTokenRequest:
    token: str
    spender: str
    amount: int

    @classmethod
    def build(cls, token, spender, amount):
        if amount is None or int(amount) <= 0:
            raise ValueError(f"Approval amount must be positive, got {amount}")
        return cls(
            token=validate_address("token address", token),
            spender=validate_address("spender address", spender),
            amount=int(amount),
        )


def approve_token(client, request: ApproveTokenRequest, gas_limit=1_000_000):
    token = client.at(ERC20_ABI, request.token)

    allowance = token.functions.allowance(client.address, request.spender).call()
    log.info(f"Current allowance of {request.spender}: {allowance}")
    if allowance >= request.amount:
        return OperationResult.skipped("approve", f"Allowance {allowance} already covers {request.amount}.")

    receipt = client.transact(token.functions.approve(request.spender, request.amount), gas_limit=gas_limit)

    updated = read_optional("new allowance", lambda: token.functions.allowance(client.address, request.spender).call())
    return OperationResult.done("approve", receipt, f"Allowance is now {updated}")


@click.command()
@network_options
@click.option("--token", envvar="TOKEN_ADDRESS", help="Token address.")
@click.option("--spender", envvar="SPENDER_ADDRESS", help="Spender address.")
@click.option("--amount", type=int, default=None, help="Amount in the token's smallest unit.")
@abort_on_failure
def cli(network, rpc, account, token, spender, amount):
    """Approves a spender for an ERC-20 / HTS token."""
    request = ApproveTokenRequest.build(token, spender, amount)

    blueprint, client = open_client(network.lower(), account, rpc)
    log.h1("Approve token")
    report(approve_token(client, request, gas_limit=blueprint.PARAMS["GAS_LIMIT_ADMIN"]))


if __name__ == "__main__":
    cli()
