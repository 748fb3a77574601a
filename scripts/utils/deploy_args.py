import os
from dataclasses import dataclass
from types import MappingProxyType

from eth_utils import is_address, to_checksum_address
from mergedeep import merge

from config.BluePrint import (CLM_DEPLOYMENTS, CLM_VAULTS, INTEGRATION_ADDYS, NETWORKS, PARAMS, RPC_URLS, TIMELOCK_ADMIN_ROLE,
                              TOKENS, VAULT_INFO, WEIBARS_PER_TINYBAR)
from scripts.utils.address import ZERO_ADDRESS, validate_address
from scripts.utils.chain import ConfirmationPolicy
from scripts.utils.migration_helpers import env_name, require_env


class Constants:
    ZERO_ADDRESS = ZERO_ADDRESS
    TIMELOCK_ADMIN_ROLE = TIMELOCK_ADMIN_ROLE
    WEIBARS_PER_TINYBAR = WEIBARS_PER_TINYBAR


def _frozen(value):
    if isinstance(value, dict):
        return MappingProxyType({k: _frozen(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_frozen(v) for v in value)
    # config addresses are written lowercase, web3 only takes checksummed ones
    if isinstance(value, str) and value.startswith("0x") and is_address(value) and value == value.lower():
        return to_checksum_address(value)
    return value


class BluePrint:
    def __init__(self, network):
        if network not in NETWORKS:
            raise ValueError(f"Unknown network `{network}`, expected one of {', '.join(NETWORKS)}")
        self.network = network
        self.PARAMS = _frozen(merge({}, PARAMS["default"], PARAMS.get(network, {})))
        self.INTEGRATION_ADDYS = _frozen(INTEGRATION_ADDYS[network])
        self.TOKENS = _frozen(TOKENS[network])
        self.VAULT_INFO = _frozen(VAULT_INFO)
        self.CLM_VAULTS = tuple(_frozen(v) for v in CLM_VAULTS[network])
        self.CLM_DEPLOYMENTS = tuple(_frozen(d) for d in CLM_DEPLOYMENTS[network])
        self.CONSTANTS = Constants

    @property
    def confirmation_policy(self):
        return ConfirmationPolicy(**self.PARAMS["CONFIRMATION"])

    def rpc_url(self, environ=None):
        environ = os.environ if environ is None else environ
        return environ.get(env_name("HEDERA_RPC_URL", self.network)) or RPC_URLS[self.network]


@dataclass(frozen=True)
class Roles:
    """Externally owned operator addresses, read once from the environment."""

    keeper: str
    dev_multisig: str
    treasury_multisig: str
    voter: str
    beefy_fee_recipient: str

    @classmethod
    def from_env(cls, network, environ=None):
        environ = os.environ if environ is None else environ
        keeper = validate_address(
            "keeper address",
            require_env("KEEPER_ADDRESS", network, environ, "The keeper also defaults every other operator role."),
        )

        def role(name, label):
            # every role falls back to the keeper (single-operator setup)
            value = environ.get(env_name(name, network))
            return validate_address(label, value) if value else keeper

        return cls(
            keeper=keeper,
            dev_multisig=role("DEV_MULTISIG", "dev multisig"),
            treasury_multisig=role("TREASURY_MULTISIG", "treasury multisig"),
            voter=role("VOTER", "voter"),
            beefy_fee_recipient=role("BEEFY_FEE_RECIPIENT", "beefy fee recipient"),
        )

    def registry_entries(self):
        return {
            "keeper": self.keeper,
            "devMultisig": self.dev_multisig,
            "treasuryMultisig": self.treasury_multisig,
            "treasurer": self.treasury_multisig,
            "launchpoolOwner": self.dev_multisig,
            "beefyFeeRecipient": self.beefy_fee_recipient,
            "voter": self.voter,
        }


class DeployArgs:
    def __init__(self, client, chain, environment, ignore_logs, blueprint, roles, rpc=None):
        self.client = client
        self.chain = chain
        self.environment = environment
        self.ignore_logs = ignore_logs
        self.blueprint = blueprint if isinstance(blueprint, BluePrint) else BluePrint(blueprint)
        self.roles = roles
        self.rpc = rpc

    @property
    def sender(self):
        return self.client.address

    def __repr__(self):
        return (f"DeployArgs(chain={self.chain}, environment={self.environment}, "
                f"network={self.blueprint.network}, ignore_logs={self.ignore_logs})")
