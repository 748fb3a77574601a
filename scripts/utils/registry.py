"""
Address Registry: the off-chain address book written by the migrations.

The registry is a flat JSON object mapping a logical role name
(`vaultFactory`, `keeper`, `beefyOracle`, ...) to a checksummed address.
The zero address is the "not deployed yet" sentinel and reads as absent.

`Registry` values are immutable; `set` returns a new registry and the
caller decides when to `persist` it.
"""

import os
import uuid
from contextlib import contextmanager

from scripts.utils import json_file
from scripts.utils.address import is_zero_address, same_address, validate_address

REGISTRY_FILENAME = "deployed-addresses.json"


class RegistryNotFound(FileNotFoundError):
    """No registry file at the given path (first run)."""


class MissingDependency(KeyError):
    """A step needs a registry key that no earlier step has recorded."""

    def __init__(self, key):
        self.key = key
        super().__init__(key)

    def __str__(self):
        return f"Registry has no address for `{self.key}`. Run the migration that deploys it first."


class RegistryConflict(ValueError):
    """A recorded address would be replaced by a different one."""


class RegistryLocked(RuntimeError):
    """Another process holds the registry lock."""


class Registry:
    def __init__(self, entries=None):
        entries = entries or {}
        self._entries = {
            key: validate_address(key, address, allow_zero=True)
            for key, address in entries.items()
        }

    def get(self, key):
        address = self._entries.get(key)
        if is_zero_address(address):
            raise MissingDependency(key)
        return address

    def has(self, key):
        return not is_zero_address(self._entries.get(key))

    def set(self, key, address):
        address = validate_address(key, address)
        current = self._entries.get(key)
        if not is_zero_address(current) and not same_address(current, address):
            raise RegistryConflict(
                f"`{key}` is already recorded as {current}, refusing to replace it with {address}")

        entries = dict(self._entries)
        entries[key] = address
        return Registry(entries)

    def missing(self, keys):
        return [key for key in keys if not self.has(key)]

    def to_dict(self):
        return dict(self._entries)

    def __contains__(self, key):
        return self.has(key)

    def __iter__(self):
        return iter(sorted(self._entries))

    def __len__(self):
        return len(self._entries)

    def __eq__(self, other):
        if not isinstance(other, Registry):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self):
        recorded = sum(1 for key in self._entries if self.has(key))
        return f"Registry({recorded} addresses)"


def load(path):
    if not os.path.exists(path):
        raise RegistryNotFound(path)

    content = json_file.load(path)
    if not isinstance(content, dict):
        raise ValueError(f"Registry file {path} must contain a JSON object")
    return Registry(content)


def load_or_empty(path):
    try:
        return load(path)
    except RegistryNotFound:
        return Registry()


def persist(registry, path):
    json_file.save(path, registry.to_dict())
    return path


def _lock_filename(path):
    return f"{path}.lock"


@contextmanager
def registry_lock(path):
    """
    Holds an exclusive lock file next to the registry for the duration of a
    run. A second run against the same registry raises `RegistryLocked`
    instead of interleaving writes.
    """
    lock_path = _lock_filename(path)
    os.makedirs(os.path.dirname(lock_path) or ".", exist_ok=True)
    run_id = uuid.uuid4().hex

    try:
        fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
    except FileExistsError:
        try:
            holder = json_file.load(lock_path)
        except (OSError, ValueError):
            holder = {}
        raise RegistryLocked(
            f"Registry {path} is locked by pid {holder.get('pid', '?')} (run {holder.get('run_id', '?')}). "
            f"Remove {lock_path} if no other migration is running.")

    with os.fdopen(fd, "w") as lock_file:
        lock_file.write(f'{{"pid": {os.getpid()}, "run_id": "{run_id}"}}\n')

    try:
        yield run_id
    finally:
        if os.path.exists(lock_path):
            os.remove(lock_path)
