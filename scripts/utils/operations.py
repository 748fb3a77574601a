"""
Helpers shared by the one-shot administrative scripts in `scripts/manage`.

Every script follows the same shape: validate its inputs into a request
object, read the current on-chain state, return a skipped result when the
state already matches, otherwise send one transaction and read the state
back for confirmation.
"""

from dataclasses import dataclass
from typing import Any, Optional

from config.BluePrint import WEIBARS_PER_TINYBAR
from scripts.utils import log
from scripts.utils.address import same_address


class NotOwner(PermissionError):
    """The signer is not allowed to call an owner-only method."""

    def __init__(self, contract, owner, signer):
        self.contract = contract
        self.owner = owner
        self.signer = signer
        super().__init__(f"Signer {signer} is not the owner of {contract} (owner is {owner})")


@dataclass(frozen=True)
class OperationResult:
    action: str
    executed: bool
    message: str = ""
    receipt: Optional[Any] = None

    @classmethod
    def skipped(cls, action, message):
        log.h3(f"{action}: {message} Nothing to do.")
        return cls(action=action, executed=False, message=message)

    @classmethod
    def done(cls, action, receipt, message=""):
        return cls(action=action, executed=True, message=message, receipt=receipt)

    @property
    def tx_hash(self):
        if self.receipt is None:
            return None
        tx_hash = self.receipt["transactionHash"]
        return tx_hash.hex() if hasattr(tx_hash, "hex") else tx_hash


def read_optional(label, read, default=None):
    """
    Runs a diagnostic read that must not abort the primary action.
    Logs a warning and returns `default` when the read fails.
    """
    try:
        return read()
    except Exception as e:
        log.warn(f"Could not read {label}: {e}")
        return default


def ensure_owner(contract, signer, also_allowed=()):
    """
    Raises `NotOwner` when `signer` is neither the contract owner nor one
    of `also_allowed`. When the owner cannot be read at all the check is
    skipped with a warning and the transaction decides.
    """
    owner = read_optional("owner", lambda: contract.functions.owner().call())
    if owner is None:
        return None

    if same_address(owner, signer) or any(same_address(a, signer) for a in also_allowed):
        log.h3(f"Signer {signer} is allowed (owner {owner})")
        return owner

    raise NotOwner(contract.address, owner, signer)


def to_weibars(tinybars):
    return tinybars * WEIBARS_PER_TINYBAR


def report(result: OperationResult):
    if result.executed:
        log.h3(f"✅ {result.action} successful ({result.tx_hash})")
    if result.message and result.executed:
        log.info(f"\t{result.message}")
    return result


class PreconditionFailed(RuntimeError):
    """On-chain state makes the action unsafe or certain to revert."""
