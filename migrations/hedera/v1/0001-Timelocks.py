from scripts.utils.migration import Migration


def migrate(migration: Migration):
    migration.log.h2("Timelocks")

    proposers = [migration.get_address("devMultisig")]
    executors = [migration.get_address("keeper")]
    admin_role = migration.blueprint.CONSTANTS.TIMELOCK_ADMIN_ROLE

    def renounced(timelock):
        return lambda: not timelock.functions.hasRole(admin_role, migration.account).call()

    vault_owner = migration.deploy(
        "TimelockController",
        migration.blueprint.PARAMS["VAULT_OWNER_DELAY"],
        proposers,
        executors,
        label="vaultOwner",
    )
    migration.execute(vault_owner.functions.renounceRole, admin_role, migration.account, done=renounced(vault_owner))

    strategy_owner = migration.deploy(
        "TimelockController",
        migration.blueprint.PARAMS["STRAT_OWNER_DELAY"],
        proposers,
        executors,
        label="strategyOwner",
    )
    migration.execute(
        strategy_owner.functions.renounceRole, admin_role, migration.account, done=renounced(strategy_owner))
