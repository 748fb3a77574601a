import click

from scripts.utils import log
from scripts.utils.cli import abort_on_failure, network_options, open_client
from scripts.utils.lifecycle import run_lifecycle
from scripts.utils.registry import load


@click.command()
@network_options
@click.option("--vault", envvar="VAULT_ADDRESS", default=None, help="Vault address.")
@click.option("--registry", "registry_path", default=None,
              help="Registry file to read the vault from, with --vault-key.")
@click.option("--vault-key", default="bonzoSupplyVault", show_default=True, help="Registry key of the vault.")
@click.option("--amount", type=int, required=True, help="Deposit amount in the want token's smallest unit.")
@click.option("--value", type=int, default=0, show_default=True, help="Weibars attached to deposit and withdraw.")
@click.option("--harvest", is_flag=True, default=False, help="Harvest the strategy between deposit and withdraw.")
@abort_on_failure
def cli(network, rpc, account, vault, registry_path, vault_key, amount, value, harvest):
    """Runs a deposit / withdraw (/ harvest) cycle against a vault and checks its accounting."""
    if not vault:
        if not registry_path:
            raise click.UsageError("Provide --vault or --registry")
        vault = load(registry_path).get(vault_key)

    _, client = open_client(network.lower(), account, rpc)
    log.h1(f"Vault lifecycle {vault}")
    summary = run_lifecycle(client, vault, amount, harvest=harvest, value=value)
    log.h3(f"✅ Deposited {summary['deposited']}, minted {summary['shares']} shares, "
           f"withdrew {summary['withdrawn']}")


if __name__ == "__main__":
    cli()
