import functools
import sys

import click

from config.BluePrint import NETWORKS
from scripts.utils import log
from scripts.utils.chain import connect
from scripts.utils.deploy_args import BluePrint
from scripts.utils.migration_helpers import ACCOUNT_ROLES, get_account, load_artifacts


def abort_on_failure(command):
    """
    Logs any uncaught error and exits with status 1.

    Click's own usage errors and aborts keep their normal handling.
    """
    @functools.wraps(command)
    def wrapper(*args, **kwargs):
        try:
            return command(*args, **kwargs)
        except (click.exceptions.ClickException, click.exceptions.Abort, click.exceptions.Exit):
            raise
        except Exception as exception:
            log.error(f"\n{type(exception).__name__}: {exception}")
            cause = exception.__cause__
            while cause is not None:
                log.error(f"  caused by {type(cause).__name__}: {cause}")
                cause = cause.__cause__
            sys.exit(1)

    return wrapper


def open_client(network, account_name="DEPLOYER", rpc=""):
    blueprint = BluePrint(network)
    account = get_account(account_name, network)
    client = connect(
        rpc or blueprint.rpc_url(),
        account,
        load_artifacts(),
        policy=blueprint.confirmation_policy,
        default_gas_limit=blueprint.PARAMS["GAS_LIMIT_CALL"],
    )
    return blueprint, client


def network_options(command):
    """`--network`, `--rpc` and `--account` shared by the operational scripts."""
    command = click.option(
        "--account", "-a",
        default="DEPLOYER",
        envvar="SIGNER_ACCOUNT",
        show_default=True,
        help=f"Account whose `<NAME>_PK` key signs the transaction ({', '.join(ACCOUNT_ROLES)}).",
    )(command)
    command = click.option(
        "--rpc",
        default="",
        help="JSON-RPC relay url. Defaults to the Hashio relay of the network (or `HEDERA_RPC_URL`).",
    )(command)
    command = click.option(
        "--network", "-n",
        type=click.Choice(NETWORKS, case_sensitive=False),
        default="testnet",
        envvar="CHAIN_TYPE",
        show_default=True,
        help="Parameter set and keys to use.",
    )(command)
    return command
