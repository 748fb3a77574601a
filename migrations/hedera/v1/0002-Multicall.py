from scripts.utils.migration import Migration


def migrate(migration: Migration):
    migration.log.h2("Multicall")

    migration.deploy("Multicall", label="multicall")
