"""
Decoding of known events out of transaction receipts.

Factories report the address of a freshly cloned vault only through an
event, so the migrations decode it here against a fixed event schema and
fail loudly when the event is not in the receipt.
"""

from eth_abi import decode
from eth_utils import event_abi_to_log_topic, to_bytes, to_checksum_address
from hexbytes import HexBytes


#: `BonzoVaultV7Factory.ProxyCreated(address proxy)`
PROXY_CREATED = {
    "type": "event",
    "name": "ProxyCreated",
    "anonymous": False,
    "inputs": [
        {"name": "proxy", "type": "address", "indexed": False},
    ],
}

class EventNotFound(LookupError):
    """The receipt does not contain the expected event."""

    def __init__(self, event_name, tx_hash=None):
        self.event_name = event_name
        self.tx_hash = tx_hash
        super().__init__(f"Event {event_name} not found in transaction {tx_hash}")


def _abi_type(abi_input):
    if abi_input["type"].startswith("tuple"):
        inner = ",".join(_abi_type(c) for c in abi_input["components"])
        return f"({inner}){abi_input['type'][len('tuple'):]}"
    return abi_input["type"]


def _as_bytes(value):
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return to_bytes(hexstr=value)


def _normalize(abi_type, value):
    if abi_type == "address":
        return to_checksum_address(value)
    return value


def event_topic(event_abi) -> HexBytes:
    return HexBytes(event_abi_to_log_topic(event_abi))


def decode_log(event_abi, log) -> dict:
    """Decodes a single log entry into `{argument name: value}`."""
    topics = [_as_bytes(t) for t in log["topics"]]
    indexed = [i for i in event_abi["inputs"] if i.get("indexed")]
    plain = [i for i in event_abi["inputs"] if not i.get("indexed")]

    # anonymous events have no signature topic
    offset = 0 if event_abi.get("anonymous") else 1
    if len(topics) - offset != len(indexed):
        raise ValueError(f"{event_abi['name']}: expected {len(indexed)} indexed topics, got {len(topics) - offset}")

    args = {}
    for abi_input, topic in zip(indexed, topics[offset:]):
        abi_type = _abi_type(abi_input)
        (value,) = decode([abi_type], topic)
        args[abi_input["name"]] = _normalize(abi_type, value)

    plain_types = [_abi_type(i) for i in plain]
    values = decode(plain_types, _as_bytes(log["data"])) if plain_types else ()
    for abi_input, abi_type, value in zip(plain, plain_types, values):
        args[abi_input["name"]] = _normalize(abi_type, value)

    return args


def find_events(receipt, event_abi, address=None) -> list:
    """All decoded occurrences of `event_abi` in `receipt`, optionally from one emitter."""
    topic = event_topic(event_abi)
    found = []
    for log in receipt.get("logs", []):
        if not log["topics"]:
            continue
        if not event_abi.get("anonymous") and HexBytes(_as_bytes(log["topics"][0])) != topic:
            continue
        if address and log["address"].lower() != address.lower():
            continue
        found.append(decode_log(event_abi, log))
    return found


def decode_event(receipt, event_abi, address=None) -> dict:
    """
    Returns the arguments of the first `event_abi` log in `receipt`.

    Raises `EventNotFound` instead of returning an empty value so callers
    never record a placeholder address.
    """
    events = find_events(receipt, event_abi, address=address)
    if not events:
        tx_hash = receipt.get("transactionHash")
        if hasattr(tx_hash, "hex"):
            tx_hash = tx_hash.hex()
        raise EventNotFound(event_abi["name"], tx_hash)
    return events[0]
