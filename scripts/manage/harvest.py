from dataclasses import dataclass
from typing import Optional

import click

from scripts.utils import log
from scripts.utils.abis import CLM_STRATEGY_ABI
from scripts.utils.address import validate_address
from scripts.utils.cli import abort_on_failure, network_options, open_client
from scripts.utils.deploy_args import BluePrint
from scripts.utils.operations import OperationResult, read_optional, report, to_weibars


class HarvestFailed(RuntimeError):
    def __init__(self, failures):
        self.failures = failures
        names = ", ".join(name for name, _ in failures)
        super().__init__(f"Harvest failed for {len(failures)} strategies: {names}")


@dataclass(frozen=True)
class HarvestRequest:
    strategy: str
    call_fee_recipient: Optional[str] = None

    @classmethod
    def build(cls, strategy, call_fee_recipient=None):
        return cls(
            strategy=validate_address("strategy address", strategy),
            call_fee_recipient=(
                validate_address("call fee recipient", call_fee_recipient) if call_fee_recipient else None
            ),
        )


def harvest(client, request: HarvestRequest, gas_limit=5_000_000):
    """
    Harvests a CLM strategy. The strategy mints liquidity during the
    harvest and needs `2 * getMintFee()` attached to the call.
    """
    strategy = client.at(CLM_STRATEGY_ABI, request.strategy)

    calm = read_optional("calm status", lambda: strategy.functions.isCalm().call())
    if calm is False:
        log.warn("Strategy is not in a calm period, harvest may revert")

    mint_fee = strategy.functions.getMintFee().call()
    value = to_weibars(mint_fee * 2)
    log.info(f"Mint fee {mint_fee}, sending {value} weibars")

    if request.call_fee_recipient:
        log.info(f"Call fee recipient: {request.call_fee_recipient}")
        call = strategy.get_function_by_signature("harvest(address)")(request.call_fee_recipient)
    else:
        call = strategy.get_function_by_signature("harvest()")()

    receipt = client.transact(call, value=value, gas_limit=gas_limit)
    return OperationResult.done("harvest", receipt, f"Harvested {request.strategy}")


def harvest_all(client, targets, call_fee_recipient=None):
    """
    Harvests every `(name, strategy)` target. A failure does not stop the
    remaining harvests, `HarvestFailed` is raised at the end instead.
    """
    results = []
    failures = []
    for name, strategy in targets:
        log.h2(f"Harvesting {name} ({strategy})")
        try:
            request = HarvestRequest.build(strategy, call_fee_recipient)
            results.append(report(harvest(client, request)))
        except Exception as e:
            log.error(f"Failed to harvest {name}: {e}")
            failures.append((name, e))

    if failures:
        raise HarvestFailed(failures)
    return results


@click.command()
@network_options
@click.option("--strategy", envvar="STRATEGY_ADDRESS", default=None,
              help="Strategy to harvest. Defaults to every configured CLM vault of the network.")
@click.option("--recipient", envvar="CALL_FEE_RECIPIENT", default=None, help="Call fee recipient.")
@abort_on_failure
def cli(network, rpc, account, strategy, recipient):
    """Harvests SaucerSwap CLM strategies."""
    network = network.lower()
    if strategy:
        request = HarvestRequest.build(strategy, recipient)
        _, client = open_client(network, account, rpc)
        log.h1("Harvest")
        report(harvest(client, request))
        return

    if recipient:
        validate_address("call fee recipient", recipient)
    targets = [(vault["name"], vault["strategy"]) for vault in BluePrint(network).CLM_VAULTS]
    if not targets:
        log.warn(f"No CLM vaults configured for {network}")
        return

    _, client = open_client(network, account, rpc)

    log.h1("Harvest all")
    harvest_all(client, targets, recipient)


if __name__ == "__main__":
    cli()
