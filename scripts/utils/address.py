"""
Address validation shared by the registry, the migrations and the
operational scripts.

Everything that later ends up in a transaction goes through
`validate_address` first, so a typo in a config value or an environment
variable fails before any RPC call is made.
"""

from eth_utils import is_address, is_checksum_address, to_checksum_address

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class InvalidAddress(ValueError):
    """An address-shaped input is malformed or the zero address."""

    def __init__(self, label, value, reason="not a valid 20-byte hex address"):
        self.label = label
        self.value = value
        super().__init__(f"Invalid {label}: {value!r} ({reason})")


def is_zero_address(value) -> bool:
    return value is None or (isinstance(value, str) and value.lower() == ZERO_ADDRESS)


def validate_address(label: str, value, allow_zero: bool = False) -> str:
    """
    Returns the checksummed form of `value`.

    Raises `InvalidAddress` when `value` is empty, not a 20-byte hex string,
    has a bad mixed-case checksum, or is the zero address (unless
    `allow_zero` is set).
    """
    if value is None or value == "":
        raise InvalidAddress(label, value, "missing")

    if hasattr(value, "address"):
        value = value.address

    if not isinstance(value, str) or not value.startswith("0x") or not is_address(value):
        raise InvalidAddress(label, value)

    digits = value[2:]
    if digits != digits.lower() and digits != digits.upper() and not is_checksum_address(value):
        raise InvalidAddress(label, value, "bad checksum")

    if is_zero_address(value) and not allow_zero:
        raise InvalidAddress(label, value, "zero address")

    return to_checksum_address(value)


def same_address(a, b) -> bool:
    if a is None or b is None:
        return False
    return str(a).lower() == str(b).lower()
