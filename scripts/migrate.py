import os

import click

from config.BluePrint import NETWORKS
from scripts.utils import log
from scripts.utils.cli import abort_on_failure, open_client
from scripts.utils.deploy_args import DeployArgs, Roles
from scripts.utils.migration_runner import MigrationRunner

MIGRATION_SCRIPTS_DIR = "./migrations"
MIGRATION_HISTORY_DIR = "./migration_history"


CLICK_PROMPTS = {
    "rpc": {
        "prompt": "What is the desired rpc?",
        "default": "",
        "help": "JSON-RPC relay url. Defaults to the Hashio relay of the selected network (or `HEDERA_RPC_URL`).",
    },
    "network": {
        "prompt": "Network",
        "default": os.environ.get("CHAIN_TYPE", "testnet"),
        "help": "Parameter set and keys to use (local, testnet, mainnet). Defaults to `CHAIN_TYPE` or `testnet`.",
        "type": click.Choice(NETWORKS, case_sensitive=False),
    },
    "chain": {
        "prompt": "Chain name",
        "default": "hedera",
        "help": "Migration family under `./migrations`. Defaults to `hedera`.",
    },
    "environment": {
        "prompt": "Inform the environment name",
        "default": "v1",
        "help": "Environment of manifests that are written and read by migration scripts to pass state from previous migrations. Defaults to `v1`.",
    },
    "start_timestamp": {
        "prompt": "Start timestamp",
        "default": "",
        "help": "Timestamp at which to start running migrations. If none is provided, migrations resume after the latest manifest.",
    },
    "single": {
        "prompt": "Is single migration?",
        "default": False,
        "help": "Runs only the specified migration. If false, runs all the migrations starting from the specified timestamp."
    },
    "end_timestamp": {
        "prompt": "End timestamp",
        "default": "0",
        "help": "Last timestamp migration that will run. If none is provided, every migration after the start runs.",
        "depends": {
            "single": False
        }
    },
    "account": {
        "prompt": "Deployer account name",
        "default": "DEPLOYER",
        "help": "Account whose `<NAME>_PK` key signs the transactions. Defaults to `DEPLOYER`"
    },
    "ignore_logs": {
        "prompt": "Ignore current logs (always run transactions)?",
        "help": "Ignore previous log files and manifests",
        "default": False,
    },
}


def param_prompt(ctx, param, value):
    param_config = CLICK_PROMPTS.get(param.name)
    if param_config is None:
        return value

    default_val = param_config.get("default")
    prompt = param_config.get("prompt")
    optional = param_config.get("optional", default_val is not None)

    if value != default_val:
        return value

    if prompt is None or (ctx.params.get("silent") and optional):
        return value

    should_prompt = True

    depends = param_config.get("depends")
    if depends is not None:
        should_prompt = False
        for key in depends.keys():
            if ctx.params.get(key) == depends[key]:
                should_prompt = True
                break

    if not should_prompt:
        return value

    return click.prompt(
        f"{prompt} --{param.name.replace('_', '-')}",
        default=default_val,
        type=param_config.get("type"),
    )


def prompt_option(name, *param_decls, **kwargs):
    config = CLICK_PROMPTS[name]
    return click.option(*param_decls, default=config["default"], help=config["help"], callback=param_prompt, **kwargs)


def migration_dirs(chain, network, environment):
    return (
        f"{MIGRATION_SCRIPTS_DIR}/{chain}/{environment}",
        f"{MIGRATION_HISTORY_DIR}/{chain}-{network}/{environment}",
    )


@click.command()
@click.option("--silent", is_flag=True, default=False, is_eager=True, help="Run command without prompts.")
@prompt_option("network", "--network", "-n")
@prompt_option("rpc", "--rpc")
@prompt_option("chain", "--chain", "-c")
@prompt_option("environment", "--environment")
@prompt_option("start_timestamp", "--start-timestamp", "-t")
@prompt_option("single", "--single", "-s", is_flag=True)
@prompt_option("end_timestamp", "--end-timestamp", "-e")
@prompt_option("account", "--account", "-a")
@prompt_option("ignore_logs", "--ignore-logs", is_flag=True)
@abort_on_failure
def cli(
    silent,
    network,
    rpc,
    chain,
    environment,
    start_timestamp,
    single,
    end_timestamp,
    account,
    ignore_logs,
):
    """
    Deploys the protocol by running migration scripts.

    Migrations scripts are located in the `./migrations` directory.
    Migration script filenames are prefixed with a numeric timestamp
    that is used to set the order in which the scripts are run, and
    to determine which scripts to continue from in future migrations.

    Every deployed address is written to the address registry
    `deployed-addresses.json` of the history directory as soon as its
    transaction is mined. Later migrations read their dependencies from it
    and fail before sending anything if one is missing. A deployment whose
    registry key is already recorded is skipped, so a rerun after a failure
    picks up where the previous run stopped.

    Different history directories are used for different networks and
    environments: `./migration_history/<chain>-<network>/<environment>`.
    """
    network = network.lower()
    migrations_dir, history_dir = migration_dirs(chain, network, environment)

    blueprint, client = open_client(network, account, rpc)
    roles = Roles.from_env(network)

    deploy_args = DeployArgs(
        client, chain, environment, ignore_logs=ignore_logs, blueprint=blueprint, roles=roles, rpc=rpc)

    log.h1("Contract Migration")
    log.info(f"Deployer account `{client.address}`.")
    log.info(f"Migrations are read from `{migrations_dir}`.")
    log.info(f"Manifests and registry are stored in `{history_dir}`.")
    log.info(f"Deployment arguments: {deploy_args}")
    log.info(f"Running migrations starting with timestamp {start_timestamp or '(resume)'}.")
    log.info("")
    log.h2("Running migrations...")

    migrations = MigrationRunner(migrations_dir, history_dir)
    total_gas = migrations.run(
        deploy_args, start_timestamp or None, end_timestamp, not single)

    log.info(f'Total gas used: {total_gas}')

    log.info("Done.")
    log.info("")


if __name__ == "__main__":
    cli()
