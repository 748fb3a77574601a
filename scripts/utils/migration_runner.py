import importlib.util
import os
import re
from dataclasses import dataclass
from typing import Optional

from scripts.utils import log
from scripts.utils.deploy_args import DeployArgs
from scripts.utils.migration import Migration
from scripts.utils.registry import REGISTRY_FILENAME, registry_lock

MIGRATION_FILE = re.compile(r"(\d+).*\.py$")
MANIFEST_FILE = re.compile(r"(\d+)-manifest\.json$")


class MigrationError(Exception):
    """
    Raised when a migration script fails. `failure_timestamp` names the
    script, so the run can be resumed from it once the cause is fixed.
    """

    def __init__(self, failure_timestamp, message="Migration failed"):
        self.failure_timestamp = failure_timestamp
        self.message = message
        super().__init__(message)

    def __str__(self):
        cause = f": {self.__cause__}" if self.__cause__ else ""
        return f"{self.message} at timestamp {self.failure_timestamp}{cause}"


@dataclass(frozen=True)
class MigrationScript:
    path: str
    timestamp: str
    previous_timestamp: Optional[str]

    @property
    def number(self):
        return int(self.timestamp)

    def load(self):
        spec = importlib.util.spec_from_file_location(f"migration_{self.timestamp}", self.path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module.migrate


def discover(migrations_dir):
    """Migration scripts of `migrations_dir`, sorted by their numeric prefix."""
    if not os.path.isdir(migrations_dir):
        raise FileNotFoundError(f"No migrations directory at {migrations_dir}")

    found = []
    for filename in os.listdir(migrations_dir):
        match = MIGRATION_FILE.fullmatch(filename)
        if match:
            found.append((int(match.group(1)), match.group(1), os.path.join(migrations_dir, filename)))

    scripts = []
    previous = None
    for _, timestamp, path in sorted(found):
        scripts.append(MigrationScript(path, timestamp, previous))
        previous = timestamp
    return scripts


def latest_manifest(history_dir):
    """Timestamp of the last finished migration, `None` before the first run."""
    if not os.path.isdir(history_dir):
        return None

    timestamps = [
        match.group(1)
        for match in (MANIFEST_FILE.fullmatch(f) for f in os.listdir(history_dir))
        if match
    ]
    return max(timestamps, key=int, default=None)


class MigrationRunner:
    def __init__(self, migrations_dir, history_dir):
        self.migrations_dir = migrations_dir
        self.history_dir = history_dir
        self.gas = 0

    @property
    def registry_path(self):
        return os.path.join(self.history_dir, REGISTRY_FILENAME)

    def select(self, start_timestamp=None, end_timestamp=None):
        """
        Scripts to run. An explicit `start_timestamp` is inclusive; without
        one the run resumes after the latest manifest. An `end_timestamp` of
        `None`, `""` or `"0"` means no upper bound.
        """
        inclusive = start_timestamp is not None
        if not inclusive:
            start_timestamp = latest_manifest(self.history_dir)

        start = int(start_timestamp) if start_timestamp is not None else None
        end = int(end_timestamp) if end_timestamp and str(end_timestamp) != "0" else None

        selected = []
        for script in discover(self.migrations_dir):
            if end is not None and script.number > end:
                break
            if start is None or script.number > start or (inclusive and script.number == start):
                selected.append(script)
        return selected

    def run(self, deploy_args: DeployArgs, start_timestamp=None, end_timestamp=None, continue_running=True):
        """
        Runs the selected migrations in order, under the registry lock.

        Every migration reads and extends the address registry
        (`deployed-addresses.json` in the history directory) and leaves a
        `<timestamp>-manifest.json` behind when it finishes. The first
        failure stops the run with a `MigrationError`.

        Returns the gas spent.
        """
        os.makedirs(self.history_dir, exist_ok=True)

        with registry_lock(self.registry_path) as run_id:
            log.info(f"Registry lock acquired (run {run_id}).")
            for script in self.select(start_timestamp, end_timestamp):
                log.h1(f"Running migration with timestamp {script.timestamp}...")
                try:
                    migrate = script.load()
                    migration = Migration(deploy_args, script.timestamp, script.previous_timestamp, self.history_dir)
                    migrate(migration)
                    self.gas += migration.end()
                except Exception as exception:
                    raise MigrationError(script.timestamp) from exception

                if not continue_running:
                    break
        return self.gas
