from dataclasses import dataclass
from typing import Optional, Tuple

import click
from eth_abi import encode

from scripts.utils import log
from scripts.utils.abis import BEEFY_ORACLE_ABI, UNIV3_FACTORY_ABI
from scripts.utils.address import is_zero_address, same_address, validate_address
from scripts.utils.cli import abort_on_failure, network_options, open_client
from scripts.utils.operations import OperationResult, PreconditionFailed, ensure_owner, read_optional, report
from scripts.utils.registry import load

ORACLE_KINDS = ("chainlink", "supra", "uniswap-v3")

# SaucerSwap V2 pools are Uniswap V3 forks
MAX_FEE_TIER = 2 ** 24 - 1


@dataclass(frozen=True)
class Hop:
    token_in: str
    token_out: str
    fee: int

    @classmethod
    def parse(cls, value):
        parts = str(value).split(":")
        if len(parts) != 3:
            raise ValueError(f"Swap hop must read TOKEN_IN:TOKEN_OUT:FEE, got `{value}`")
        fee = int(parts[2])
        if not 0 < fee <= MAX_FEE_TIER:
            raise ValueError(f"Fee tier {fee} does not fit uint24")
        return cls(
            token_in=validate_address("hop token in", parts[0]),
            token_out=validate_address("hop token out", parts[1]),
            fee=fee,
        )


@dataclass(frozen=True)
class SetOracleRequest:
    """
    Points the BeefyOracle price of `token` to a sub oracle.

    `chainlink` reads `feed`, `supra` asks the Supra sub oracle for `token`,
    `uniswap-v3` prices `token` through the TWAPs of the `path` pools.
    """

    beefy_oracle: str
    token: str
    kind: str
    sub_oracle: str
    feed: Optional[str] = None
    path: Tuple[Hop, ...] = ()
    twaps: Tuple[int, ...] = ()
    factory: Optional[str] = None

    @classmethod
    def build(cls, beefy_oracle, token, kind, sub_oracle, feed=None, path=(), twaps=(), factory=None):
        if kind not in ORACLE_KINDS:
            raise ValueError(f"Unknown oracle kind `{kind}`, expected one of {', '.join(ORACLE_KINDS)}")
        hops = tuple(hop if isinstance(hop, Hop) else Hop.parse(hop) for hop in path)
        twaps = tuple(int(t) for t in twaps)

        if kind == "chainlink":
            feed = validate_address("chainlink feed", feed)
        elif kind == "uniswap-v3":
            if not hops:
                raise ValueError("uniswap-v3 oracles need at least one swap hop")
            if len(twaps) != len(hops):
                raise ValueError(f"Expected one TWAP period per hop ({len(hops)}), got {len(twaps)}")
            if any(t <= 0 for t in twaps):
                raise ValueError("TWAP periods must be positive")
            for previous, hop in zip(hops, hops[1:]):
                if not same_address(previous.token_out, hop.token_in):
                    raise ValueError(f"Swap path is broken between {previous.token_out} and {hop.token_in}")
            factory = validate_address("pool factory", factory)
            # the priced token is where the path ends
            if token is None:
                token = hops[-1].token_out
            elif not same_address(token, hops[-1].token_out):
                raise ValueError(f"Swap path ends at {hops[-1].token_out}, not at {token}")

        return cls(
            beefy_oracle=validate_address("beefy oracle", beefy_oracle),
            token=validate_address("token", token),
            kind=kind,
            sub_oracle=validate_address("sub oracle", sub_oracle),
            feed=feed,
            path=hops,
            twaps=twaps,
            factory=factory,
        )


def oracle_data(client, request: SetOracleRequest):
    if request.kind == "chainlink":
        return encode(["address"], [request.feed])
    if request.kind == "supra":
        return encode(["address", "address"], [request.sub_oracle, request.token])

    factory = client.at(UNIV3_FACTORY_ABI, request.factory)
    tokens, pools = [], []
    for hop in request.path:
        pool = factory.functions.getPool(hop.token_in, hop.token_out, hop.fee).call()
        if is_zero_address(pool):
            raise PreconditionFailed(f"No pool for {hop.token_in} / {hop.token_out} at fee {hop.fee}")
        tokens.append(hop.token_in)
        pools.append(pool)
    tokens.append(request.path[-1].token_out)
    return encode(["address[]", "address[]", "uint256[]"], [tokens, pools, list(request.twaps)])


def set_oracle(client, request: SetOracleRequest, gas_limit=1_000_000):
    beefy_oracle = client.at(BEEFY_ORACLE_ABI, request.beefy_oracle)
    data = oracle_data(client, request)

    current = read_optional("current sub oracle", lambda: beefy_oracle.functions.subOracle(request.token).call())
    if current is not None and same_address(current[0], request.sub_oracle) and bytes(current[1]) == data:
        return OperationResult.skipped("setOracle", f"{request.token} is already priced by {request.sub_oracle}.")

    ensure_owner(beefy_oracle, client.address)

    log.h3(f"Setting {request.kind} oracle {request.sub_oracle} for {request.token}")
    receipt = client.transact(
        beefy_oracle.functions.setOracle(request.token, request.sub_oracle, data), gas_limit=gas_limit)

    return OperationResult.done("setOracle", receipt, f"{request.token} is priced by {request.sub_oracle}")


@click.command()
@network_options
@click.option("--oracle", envvar="BEEFY_ORACLE_ADDRESS", default=None, help="BeefyOracle address.")
@click.option("--registry", "registry_path", default=None, help="Registry file to read `beefyOracle` from.")
@click.option("--kind", type=click.Choice(ORACLE_KINDS), required=True, help="Kind of sub oracle.")
@click.option("--sub-oracle", envvar="SUB_ORACLE_ADDRESS", help="Sub oracle contract pricing the token.")
@click.option("--token", envvar="TOKEN_ADDRESS", default=None,
              help="Token to price. Defaults to the end of --hop for uniswap-v3.")
@click.option("--feed", default=None, help="Chainlink price feed (chainlink).")
@click.option("--hop", "hops", multiple=True, help="TOKEN_IN:TOKEN_OUT:FEE swap hop, repeatable (uniswap-v3).")
@click.option("--twap", "twaps", multiple=True, type=int, help="TWAP period in seconds per hop (uniswap-v3).")
@click.option("--factory", default=None, help="Pool factory (uniswap-v3).")
@abort_on_failure
def cli(network, rpc, account, oracle, registry_path, kind, sub_oracle, token, feed, hops, twaps, factory):
    """Sets the sub oracle BeefyOracle uses to price a token."""
    if not oracle:
        if not registry_path:
            raise click.UsageError("Provide --oracle or --registry")
        oracle = load(registry_path).get("beefyOracle")
    request = SetOracleRequest.build(oracle, token, kind, sub_oracle, feed, hops, twaps, factory)

    _, client = open_client(network.lower(), account, rpc)
    log.h1("Set oracle")
    report(set_oracle(client, request))


if __name__ == "__main__":
    cli()
