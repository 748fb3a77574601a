from scripts.utils.migration import Migration


def migrate(migration: Migration):
    migration.log.h2("Operator roles")

    for key, address in migration.roles.registry_entries().items():
        migration.include_address(key, address)
