import json
import os

import dotenv
from eth_account import Account

from scripts.utils import log

dotenv.load_dotenv()

# Define constants for directories
ARTIFACTS_DIR = os.environ.get("ARTIFACTS_DIR", "./artifacts")

# first anvil / hardhat node account, only ever used on the `local` chain
TEST_PRIVATE_KEY = '0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80'

ACCOUNT_ROLES = ("DEPLOYER", "KEEPER", "UPGRADER", "REWARDER")


class MissingEnvironmentVariable(KeyError):
    """A required environment variable is not set."""

    def __init__(self, name, hint=""):
        self.name = name
        self.hint = hint
        super().__init__(name)

    def __str__(self):
        return f"Environment variable `{self.name}` is not set.{' ' + self.hint if self.hint else ''}"


class ArtifactNotFound(KeyError):
    """No compiled artifact for the requested contract name."""

    def __str__(self):
        return f"No artifact for contract `{self.args[0]}` under {ARTIFACTS_DIR}. Compile the contracts first."


def env_name(name, network):
    # mainnet keys carry a `_MAINNET` suffix, testnet and local use the plain name
    return f"{name}_MAINNET" if network == "mainnet" else name


def require_env(name, network, environ=None, hint=""):
    environ = os.environ if environ is None else environ
    key = env_name(name, network)
    value = environ.get(key)
    if not value:
        raise MissingEnvironmentVariable(key, hint)
    return value


def load_artifacts(directories=[ARTIFACTS_DIR]):
    """
    Index the Hardhat artifacts found in the specified directories and their
    subdirectories, keyed by contract name.
    Returns relative paths from the project root.
    """
    artifacts = {}

    for directory in directories:
        if not os.path.exists(directory):
            continue

        for root, _, files in os.walk(directory):
            if "build-info" in root.split(os.sep):
                continue
            for file in files:
                if not file.endswith('.json') or file.endswith('.dbg.json'):
                    continue
                rel_path = os.path.relpath(os.path.join(root, file))
                artifacts[file[:-5]] = rel_path

    return artifacts


def load_artifact(path):
    with open(path) as file:
        artifact = json.load(file)

    if "abi" not in artifact or "bytecode" not in artifact:
        raise ValueError(f"{path} is not a Hardhat artifact (needs `abi` and `bytecode`)")
    return artifact


def get_account(account_name, network):
    log.h1(f'Connecting to {account_name.lower()} account')

    key_name = env_name(f"{account_name}_PK", network)
    account_key = os.environ.get(key_name)
    if not account_key:
        if network != "local":
            raise MissingEnvironmentVariable(key_name, "Put the private key in `.env`.")
        account_key = TEST_PRIVATE_KEY

    # keys in `.env` are stored without the `0x` prefix
    if not account_key.startswith("0x"):
        account_key = f"0x{account_key}"

    account = Account.from_key(account_key)
    log.h2(f'Account {account_name} connected: {account.address}')

    return account
