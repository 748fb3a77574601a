"""
Chain access for the migrations and operational scripts.

`ChainClient` signs locally with the deployer/keeper account, sends one
transaction at a time and blocks until it is mined. Confirmation is an
explicit polling loop with exponential backoff, bounded by a timeout and a
maximum number of attempts, so a lagging relay surfaces as
`ConfirmationTimedOut` instead of hanging the run.

Failed transactions are never retried automatically: a state-changing call
that reverted raises `TransactionFailed` with the best revert reason we can
extract, and the operator decides what to do next.
"""

import re
import time
from dataclasses import dataclass

import requests
from eth_account.signers.local import LocalAccount
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError, TransactionNotFound, Web3RPCError

from scripts.utils import log
from scripts.utils.migration_helpers import ArtifactNotFound, load_artifact

UNKNOWN_REVERT_REASON = "<could not extract the revert reason>"


class TransactionFailed(Exception):
    """A transaction reverted, ran out of gas or could not be built."""

    def __init__(self, message, tx_hash=None, reason=None):
        self.tx_hash = tx_hash
        self.reason = reason
        details = f" (reason: {reason})" if reason else ""
        where = f" tx {tx_hash}" if tx_hash else ""
        super().__init__(f"{message}{where}{details}")


class ContractDeploymentFailed(TransactionFailed):
    """The deployment receipt has no contract address."""


class ConfirmationTimedOut(TimeoutError):
    """The transaction was not mined within the confirmation policy."""

    def __init__(self, tx_hash, attempts, elapsed):
        self.tx_hash = tx_hash
        self.attempts = attempts
        self.elapsed = elapsed
        super().__init__(
            f"Transaction {tx_hash} not confirmed after {attempts} attempts ({elapsed:.1f}s)")


@dataclass(frozen=True)
class ConfirmationPolicy:
    #: Give up after this many seconds
    timeout: float = 180.0
    #: First wait between two polls
    poll_interval: float = 1.0
    #: Ceiling for the wait between two polls
    max_interval: float = 15.0
    #: Wait multiplier after each unsuccessful poll
    backoff: float = 2.0
    #: Give up after this many polls
    max_attempts: int = 30


# transient RPC failures are treated as "not mined yet"
TRANSIENT_ERRORS = (
    TransactionNotFound,
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
)

# JSON-RPC error responses; older providers raise them as ValueError
RPC_ERRORS = (Web3RPCError, ValueError)


def _hex(tx_hash):
    return HexBytes(tx_hash).hex() if not isinstance(tx_hash, str) else tx_hash


def poll(check, policy: ConfirmationPolicy, sleep=time.sleep, clock=time.monotonic):
    """
    Calls `check()` until it returns something other than `None`.

    Returns `(result, attempts)`; result is `None` when the policy ran out.
    """
    started = clock()
    delay = policy.poll_interval
    attempts = 0

    while attempts < policy.max_attempts:
        attempts += 1
        result = check()
        if result is not None:
            return result, attempts

        remaining = policy.timeout - (clock() - started)
        if remaining <= 0 or attempts >= policy.max_attempts:
            break

        sleep(min(delay, policy.max_interval, remaining))
        delay *= policy.backoff

    return None, attempts


def wait_for_confirmation(web3: Web3, tx_hash, policy: ConfirmationPolicy = ConfirmationPolicy(), sleep=time.sleep, clock=time.monotonic):
    started = clock()

    def fetch_receipt():
        try:
            return web3.eth.get_transaction_receipt(tx_hash)
        except TRANSIENT_ERRORS:
            return None

    receipt, attempts = poll(fetch_receipt, policy, sleep=sleep, clock=clock)
    if receipt is None:
        raise ConfirmationTimedOut(_hex(tx_hash), attempts, clock() - started)
    return receipt


def wait_for_code(web3: Web3, address, policy: ConfirmationPolicy = ConfirmationPolicy(), sleep=time.sleep):
    """
    Waits until the relay serves bytecode for a freshly deployed contract.

    Hedera's JSON-RPC relay reads from the mirror node, which can lag a few
    seconds behind consensus.
    """
    def fetch_code():
        try:
            code = web3.eth.get_code(address)
        except TRANSIENT_ERRORS:
            return None
        return code if code and len(code) > 0 else None

    code, attempts = poll(fetch_code, policy, sleep=sleep)
    if code is None:
        log.warn(f"No bytecode visible at {address} after {attempts} attempts")
    return code is not None


def fetch_revert_reason(web3: Web3, tx_hash, receipt=None) -> str:
    """
    Replays a failed transaction with `eth_call` at the block it was mined in
    and returns the revert message.
    """
    try:
        tx = web3.eth.get_transaction(tx_hash)
    except TRANSIENT_ERRORS + RPC_ERRORS as e:
        log.warn(f"Could not load transaction {_hex(tx_hash)} to replay it: {e}")
        return UNKNOWN_REVERT_REASON

    replay_tx = {
        "to": tx["to"],
        "from": tx["from"],
        "value": tx["value"],
        "data": tx["input"],
        "gas": tx["gas"],
    }
    block = (receipt or {}).get("blockNumber")
    block_identifier = block - 1 if block else "latest"

    try:
        web3.eth.call(replay_tx, block_identifier)
    except ContractLogicError as e:
        return e.message or str(e)
    except Web3RPCError as e:
        return e.message
    except ValueError as e:
        data = e.args[0] if e.args else e
        if isinstance(data, dict):
            return data.get("message", str(data))
        return str(data)
    except TRANSIENT_ERRORS as e:
        log.warn(f"Could not replay transaction {_hex(tx_hash)}: {e}")

    return UNKNOWN_REVERT_REASON


class UnlinkedLibrary(ValueError):
    """The artifact references a library the deployment was not given."""


def link_bytecode(artifact, libraries=None):
    """
    Fills the library placeholders of a Hardhat artifact.

    `libraries` maps library names to deployed addresses; the artifact's
    `linkReferences` say where each address goes in the bytecode.
    """
    libraries = libraries or {}
    bytecode = artifact["bytecode"]
    references = artifact.get("linkReferences") or {}
    if not references:
        return bytecode

    # placeholders are not hex, zero them before patching bytes
    data = bytearray.fromhex(re.sub(r"__\$(.*?)\$__", "0" * 40, bytecode[2:], flags=re.DOTALL))

    for source, names in references.items():
        for name, offsets in names.items():
            if name not in libraries:
                raise UnlinkedLibrary(f"{artifact.get('contractName', 'contract')} needs library {name} ({source})")
            address = bytes.fromhex(Web3.to_checksum_address(libraries[name])[2:])
            for offset in offsets:
                data[offset["start"]:offset["start"] + offset["length"]] = address

    return "0x" + data.hex()


def _revert_message(error: ContractLogicError) -> str:
    return error.message or str(error)


class _Transfer:
    def __init__(self, to):
        self.to = Web3.to_checksum_address(to)

    def build_transaction(self, params):
        return dict(params, to=self.to)


class ChainClient:
    """
    One account on one network.

    `deploy` and `transact` both return only once the transaction is mined
    with status 1.
    """

    def __init__(
        self,
        web3: Web3,
        account: LocalAccount,
        artifacts: dict = None,
        policy: ConfirmationPolicy = ConfirmationPolicy(),
        default_gas_limit: int = 5_000_000,
    ):
        self.web3 = web3
        self.account = account
        self.artifacts = artifacts or {}
        self.policy = policy
        self.default_gas_limit = default_gas_limit
        self._loaded = {}

    @property
    def address(self):
        return self.account.address

    @property
    def chain_id(self):
        return self.web3.eth.chain_id

    def balance(self, address=None):
        return self.web3.eth.get_balance(address or self.address)

    def nonce(self):
        return self.web3.eth.get_transaction_count(self.address, "pending")

    def artifact(self, name):
        if name not in self._loaded:
            if name not in self.artifacts:
                raise ArtifactNotFound(name)
            self._loaded[name] = load_artifact(self.artifacts[name])
        return self._loaded[name]

    def at(self, name_or_abi, address):
        """Contract handle at `address`, from an artifact name or a raw ABI list."""
        abi = name_or_abi if isinstance(name_or_abi, list) else self.artifact(name_or_abi)["abi"]
        return self.web3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    def deploy(self, name, *args, gas_limit=None, value=0, libraries=None):
        artifact = self.artifact(name)
        bytecode = link_bytecode(artifact, libraries)
        factory = self.web3.eth.contract(abi=artifact["abi"], bytecode=bytecode)

        receipt = self._send(factory.constructor(*args), f"{name} deployment", value=value, gas_limit=gas_limit)
        address = receipt.get("contractAddress")
        if not address:
            raise ContractDeploymentFailed(
                f"{name} deployment mined without a contract address", tx_hash=_hex(receipt["transactionHash"]))

        wait_for_code(self.web3, address, self.policy)
        return self.at(artifact["abi"], address)

    def transact(self, call, value=0, gas_limit=None):
        label = f"{getattr(call, 'fn_name', 'call')}{tuple(getattr(call, 'args', ()))}"
        return self._send(call, label, value=value, gas_limit=gas_limit)

    def send_value(self, to, value, gas_limit=None):
        """Plain HBAR transfer, `value` in weibars."""
        return self._send(_Transfer(to), f"transfer to {to}", value=value, gas_limit=gas_limit)

    def _build(self, call, label, value, gas_limit):
        params = {
            "from": self.address,
            "nonce": self.nonce(),
            "chainId": self.chain_id,
            "value": value,
            "gasPrice": self.web3.eth.gas_price,
        }
        params["gas"] = gas_limit or self.default_gas_limit
        try:
            return call.build_transaction(params)
        except ContractLogicError as e:
            raise TransactionFailed(f"{label} would revert", reason=_revert_message(e)) from e
        except RPC_ERRORS as e:
            raise TransactionFailed(f"{label} could not be built", reason=str(e)) from e

    def _send(self, call, label, value=0, gas_limit=None):
        tx = self._build(call, label, value, gas_limit)
        signed = self.account.sign_transaction(tx)

        try:
            tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
        except ContractLogicError as e:
            raise TransactionFailed(f"{label} rejected", reason=_revert_message(e)) from e
        except RPC_ERRORS as e:
            # e.g. insufficient balance, nonce too low
            raise TransactionFailed(f"{label} rejected by the relay", reason=str(e)) from e

        log.h3(f"Sent {label}: {_hex(tx_hash)}")
        receipt = wait_for_confirmation(self.web3, tx_hash, self.policy)

        if receipt["status"] != 1:
            reason = fetch_revert_reason(self.web3, tx_hash, receipt)
            raise TransactionFailed(f"{label} reverted", tx_hash=_hex(tx_hash), reason=reason)

        log.tx(label, receipt)
        return receipt


def connect(rpc_url, account, artifacts=None, policy: ConfirmationPolicy = ConfirmationPolicy(), default_gas_limit=5_000_000):
    web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": 60}))
    client = ChainClient(web3, account, artifacts, policy=policy, default_gas_limit=default_gas_limit)

    log.info(f"Connected to rpc `{rpc_url}` (chain id {client.chain_id}).")
    balance = client.balance()
    log.info(f"Account {client.address} balance: {Web3.from_wei(balance, 'ether')} HBAR")
    if balance == 0:
        log.warn("Account has zero balance, transactions will fail with insufficient funds.")

    return client
