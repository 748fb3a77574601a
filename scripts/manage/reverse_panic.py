from dataclasses import dataclass

import click

from scripts.utils import log
from scripts.utils.abis import CLM_STRATEGY_ABI
from scripts.utils.address import validate_address
from scripts.utils.cli import abort_on_failure, network_options, open_client
from scripts.utils.operations import (OperationResult, PreconditionFailed, ensure_owner, read_optional, report,
                                      to_weibars)

# tinybars, used when getMintFee() cannot be read
DEFAULT_MINT_FEE = 20_000_000


@dataclass(frozen=True)
class ReversePanicRequest:
    strategy: str

    @classmethod
    def build(cls, strategy):
        return cls(strategy=validate_address("strategy address", strategy))


def required_value(mint_fee):
    # liquidity may be added to both the main and the alt position, plus 50%
    return to_weibars(mint_fee * 2 * 150 // 100)


def reverse_panic(client, request: ReversePanicRequest, gas_limit=5_000_000):
    """
    Restores a panicked CLM strategy: unpauses it and adds the liquidity back.
    Requires the pool to be calm.
    """
    strategy = client.at(CLM_STRATEGY_ABI, request.strategy)

    if not strategy.functions.paused().call():
        return OperationResult.skipped("reversePanic", "Strategy is not paused.")

    calm = read_optional("calm status", lambda: strategy.functions.isCalm().call())
    if calm is False:
        raise PreconditionFailed(f"Pool of {request.strategy} is not calm, reversePanic would revert")

    ensure_owner(strategy, client.address)

    balances = read_optional("strategy balances", lambda: strategy.functions.balances().call())
    if balances is not None:
        log.info(f"Strategy balances: token0 {balances[0]}, token1 {balances[1]}")
        if balances[0] == 0 and balances[1] == 0:
            log.warn("Strategy holds no tokens, reversePanic will not add liquidity")

    mint_fee = read_optional("mint fee", lambda: strategy.functions.getMintFee().call(), DEFAULT_MINT_FEE)
    value = required_value(mint_fee)
    log.info(f"Mint fee {mint_fee}, sending {value} weibars")

    receipt = client.transact(strategy.functions.reversePanic(), value=value, gas_limit=gas_limit)

    paused = read_optional("pause status", lambda: strategy.functions.paused().call())
    if paused:
        log.warn("Strategy still reads as paused after reversePanic")

    return OperationResult.done("reversePanic", receipt, "Strategy is unpaused, liquidity restored")


@click.command()
@network_options
@click.option("--strategy", envvar="STRATEGY_ADDRESS", help="CLM strategy address.")
@abort_on_failure
def cli(network, rpc, account, strategy):
    """Reverses a panic on a SaucerSwap CLM strategy."""
    request = ReversePanicRequest.build(strategy)

    _, client = open_client(network.lower(), account, rpc)
    log.h1("Reverse panic")
    report(reverse_panic(client, request))


if __name__ == "__main__":
    cli()
