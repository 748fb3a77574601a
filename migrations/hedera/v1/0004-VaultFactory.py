from scripts.utils.migration import Migration


def migrate(migration: Migration):
    migration.log.h2("Vault factory")

    vault_v7 = migration.deploy("BonzoVaultV7", label="vaultV7")
    vault_v7_multi_token = migration.deploy("BeefyVaultV7HederaMultiToken", label="vaultV7MultiToken")

    migration.deploy(
        "BonzoVaultV7Factory",
        vault_v7,
        vault_v7_multi_token,
        label="vaultFactory",
    )
