from dataclasses import dataclass

import click

from scripts.utils import log
from scripts.utils.abis import BEEFY_ORACLE_ABI
from scripts.utils.address import validate_address
from scripts.utils.cli import abort_on_failure, network_options, open_client
from scripts.utils.operations import OperationResult, read_optional, report
from scripts.utils.registry import load

# WHBAR
DEFAULT_TOKEN = {
    "local": "0x0000000000000000000000000000000000003ad2",
    "testnet": "0x0000000000000000000000000000000000003ad2",
    "mainnet": "0x0000000000000000000000000000000000163b5a",
}


@dataclass(frozen=True)
class RefreshPriceRequest:
    beefy_oracle: str
    token: str

    @classmethod
    def build(cls, beefy_oracle, token):
        return cls(
            beefy_oracle=validate_address("beefy oracle", beefy_oracle),
            token=validate_address("token", token),
        )


def refresh_price(client, request: RefreshPriceRequest, gas_limit=1_200_000):
    """Stores a fresh USD price for `token` in BeefyOracle (keeper action)."""
    beefy_oracle = client.at(BEEFY_ORACLE_ABI, request.beefy_oracle)

    def stored_price():
        return read_optional("stored price", lambda: beefy_oracle.functions.getPriceInUSD(request.token).call())

    before = stored_price()
    log.info(f"Price of {request.token} before: {before}")

    receipt = client.transact(beefy_oracle.functions.getFreshPriceInUSD(request.token), gas_limit=gas_limit)

    after = stored_price()
    log.info(f"Price of {request.token} after: {after}")
    if after is not None and after == 0:
        log.warn("BeefyOracle still has no price, check the sub oracle of the token")

    return OperationResult.done("getFreshPriceInUSD", receipt, f"Price {before} -> {after}")


@click.command()
@network_options
@click.option("--oracle", envvar="BEEFY_ORACLE_ADDRESS", default=None, help="BeefyOracle address.")
@click.option("--registry", "registry_path", default=None, help="Registry file to read `beefyOracle` from.")
@click.option("--token", envvar="TOKEN_ADDRESS", default=None, help="Token to price. Defaults to WHBAR.")
@abort_on_failure
def cli(network, rpc, account, oracle, registry_path, token):
    """Refreshes the USD price BeefyOracle stores for a token."""
    if not oracle:
        if not registry_path:
            raise click.UsageError("Provide --oracle or --registry")
        oracle = load(registry_path).get("beefyOracle")
    network = network.lower()
    request = RefreshPriceRequest.build(oracle, token or DEFAULT_TOKEN[network])

    _, client = open_client(network, account, rpc)
    log.h1("Refresh oracle price")
    report(refresh_price(client, request))


if __name__ == "__main__":
    cli()
