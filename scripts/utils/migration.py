import os

from scripts.utils import json_file, log, registry
from scripts.utils.address import is_zero_address, same_address, validate_address
from scripts.utils.deploy_args import DeployArgs
from scripts.utils.events import PROXY_CREATED, decode_event


def _arg(value):
    # contract handles are passed around in migrations, the chain wants addresses
    if hasattr(value, "address"):
        return value.address
    if isinstance(value, (list, tuple)):
        return type(value)(_arg(v) for v in value)
    return value


def _tx_hash(receipt):
    tx_hash = receipt["transactionHash"]
    return tx_hash.hex() if hasattr(tx_hash, "hex") else str(tx_hash)


class Migration:
    def __init__(self, deploy_args: DeployArgs, timestamp, previous_timestamp, history_path):
        self._deploy_args = deploy_args
        self._client = deploy_args.client
        self._timestamp = timestamp
        self._previous_timestamp = previous_timestamp
        self._history_path = history_path
        self._count = 0
        self._transactions = []
        self._recorded = {}
        self._fresh = set()
        self.gas = 0

        filename = self._registry_filename()
        log.h3(f"Loading registry {filename}")
        self._registry = registry.load_or_empty(filename)

        if self._deploy_args.ignore_logs:
            log.h3("Ignoring previous logs, every transaction will be sent")
        elif self._load_log_file():
            log.h3(f"Log file {self._log_filename()} loaded")
        else:
            log.h3(f"No previous log file: {self._log_filename()}")

    @property
    def client(self):
        return self._client

    @property
    def account(self):
        return self._client.address

    @property
    def chain(self):
        return self._deploy_args.chain

    @property
    def blueprint(self):
        return self._deploy_args.blueprint

    @property
    def roles(self):
        return self._deploy_args.roles

    @property
    def registry(self):
        return self._registry

    @property
    def log(self):
        return log

    def deploy(self, name, *args, label=None, gas_limit=None, libraries=None):
        """
        Deploys contract with given name and args or skips if already deployed.
        `label` is the registry key, defaults to the contract name.
        `libraries` maps linked library names to their contracts.
        Returns the deployed contract.
        """
        label = label or name
        args = [_arg(a) for a in args]
        gas_limit = gas_limit or self.blueprint.PARAMS["GAS_LIMIT_DEPLOY"]
        libraries = {lib: _arg(address) for lib, address in (libraries or {}).items()}

        def deploy_wrapper():
            contract = self._client.deploy(name, *args, gas_limit=gas_limit, libraries=libraries or None)
            log.h3(f"Contract {name} deployed at {contract.address}")
            self._fresh.add(contract.address)
            self._record(label, contract.address)
            return contract, contract.address

        contract = self._run_recorded(f"Deploying {name} as `{label}`", label, deploy_wrapper)
        return contract if contract is not None else self._client.at(name, self._registry.get(label))

    def clone(self, factory_function, name, label, *args, event=PROXY_CREATED, arg="proxy", gas_limit=None):
        """
        Calls a clone factory and records the address it reports in `event`,
        or skips if `label` is already recorded.
        Returns a handle to the clone, using the ABI of `name`.
        """
        args = [_arg(a) for a in args]
        gas_limit = gas_limit or self.blueprint.PARAMS["GAS_LIMIT_CALL"]

        def clone_wrapper():
            receipt = self._client.transact(factory_function(*args), gas_limit=gas_limit)
            self.gas += receipt.get("gasUsed", 0)
            address = decode_event(receipt, event)[arg]
            log.h3(f"{name} cloned at {address}")
            self._fresh.add(address)
            self._record(label, address)
            return address, address

        self._run_recorded(f"Cloning {name} as `{label}`", label, clone_wrapper)
        return self._client.at(name, self._registry.get(label))

    def execute(self, function, *args, value=0, gas_limit=None, done=None):
        """
        Executes a transaction or skips if already executed.

        A transaction is skipped when the migration log lists it. When the
        log does not and the target contract was not deployed by this run,
        `done()` is asked whether the chain already holds the result (e.g.
        `owner()` is already the new owner). `ignore_logs` sends it anyway.

        Returns the transaction receipt, or `None` when skipped.
        """
        args = [_arg(a) for a in args]
        call = function(*args)
        gas_limit = gas_limit or self.blueprint.PARAMS["GAS_LIMIT_CALL"]
        message = f"{getattr(function, 'fn_name', getattr(function, '__name__', 'call'))} - {args}"

        def transaction_wrapper():
            if done is not None and self._applied(call, done):
                log.h3("Skipping, already applied on chain")
                return None, "applied on chain"
            receipt = self._client.transact(call, value=value, gas_limit=gas_limit)
            self.gas += receipt.get("gasUsed", 0)
            return receipt, _tx_hash(receipt)

        return self._run(message, transaction_wrapper)

    def initialized(self, contract):
        """Upgradeable Beefy contracts get their owner in `initialize`."""
        return not is_zero_address(contract.functions.owner().call())

    def owned_by(self, contract, owner):
        return same_address(contract.functions.owner().call(), _arg(owner))

    def include_address(self, key, address):
        """Records an address that was not deployed by this migration (roles, external contracts)."""
        address = validate_address(key, address)
        if self._registry.has(key) and self._registry.get(key) == address:
            log.h3(f"{key} already recorded at {address}")
            self._recorded[key] = address
            return address
        self._record(key, address)
        return address

    def get_address(self, name):
        return self._registry.get(name)

    def get_contract(self, name, key=None):
        return self._client.at(name, self.get_address(key or name))

    def require(self, *keys):
        """Fails with `MissingDependency` before any transaction if a key is missing."""
        for key in keys:
            self._registry.get(key)

    def end(self):
        """
        Ends the migration and saves the manifest file
        """
        json_file.save(
            self._manifest_filename(self._timestamp),
            {
                "addresses": self._recorded,
                "transactions": self._transactions,
            },
        )
        json_file.remove(self._log_filename())

        log.info(f"Gas spent for migration: {self.gas}")

        return self.gas

    def _curr_transaction(self):
        """
        Returns the current transaction if it's been already executed.
        """
        if self._count >= len(self._transactions):
            return None
        return self._transactions[self._count]

    def _run(self, message, action):
        next_transaction = self._count + 1
        log.h2(
            f"Transaction {next_transaction} for migration with timestamp {self._timestamp} - {message}"
        )

        logged = self._curr_transaction()
        if logged is not None:
            log.h3(f"Skipping transaction {next_transaction} ({logged})")
            self._count += 1
            return None

        result, entry = action()
        self._transactions.append(entry)
        self._count += 1
        self._save_log_file()
        return result

    def _run_recorded(self, message, label, action):
        # deployments are skipped when the registry already knows the label,
        # even without a log entry (e.g. registry carried over from another run)
        if self._registry.has(label):
            address = self._registry.get(label)
            log.h2(f"Transaction {self._count + 1} for migration with timestamp {self._timestamp} - {message}")
            log.h3(f"Skipping, `{label}` already recorded at {address}")
            self._recorded[label] = address
            if self._curr_transaction() is None:
                self._transactions.append(address)
                self._save_log_file()
            self._count += 1
            return None

        logged = self._curr_transaction()
        if logged is not None:
            # crashed after the deployment was logged, before the registry was saved
            self._record(label, logged)

        return self._run(message, action)

    def _applied(self, call, done):
        if self._deploy_args.ignore_logs or call.address in self._fresh:
            return False
        return bool(done())

    def _record(self, key, address):
        self._registry = self._registry.set(key, address)
        registry.persist(self._registry, self._registry_filename())
        self._recorded[key] = self._registry.get(key)
        log.h3(f"{key} added to registry")

    def _registry_filename(self):
        return os.path.join(self._history_path, registry.REGISTRY_FILENAME)

    def _log_filename(self):
        return os.path.join(self._history_path, f"{self._timestamp}-log.json")

    def _manifest_filename(self, name):
        return os.path.join(self._history_path, f"{name}-manifest.json")

    def _load_log_file(self):
        # an interrupted run leaves a log file, a finished one leaves its manifest
        for filename in (self._log_filename(), self._manifest_filename(self._timestamp)):
            if not os.path.exists(filename):
                continue
            self._transactions = list(json_file.load(filename).get("transactions", []))
            return True
        return False

    def _save_log_file(self):
        json_file.save(
            self._log_filename(),
            {
                "transactions": [str(tx) for tx in self._transactions],
            },
        )
