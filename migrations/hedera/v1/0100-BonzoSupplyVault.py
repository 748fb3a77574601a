from scripts.utils.migration import Migration


def migrate(migration: Migration):
    migration.log.h2("Bonzo supply vault")

    migration.require("vaultFactory", "keeper", "beefyFeeRecipient", "beefyFeeConfig")

    tokens = migration.blueprint.TOKENS
    addys = migration.blueprint.INTEGRATION_ADDYS
    info = migration.blueprint.VAULT_INFO["BONZO_SUPPLY"]
    if not tokens or not addys:
        raise ValueError(f"No Bonzo token or lending pool addresses configured for `{migration.blueprint.network}`")

    strategy = migration.deploy("BonzoSupplyStrategy", label="bonzoSupplyStrategy")

    vault_factory = migration.get_contract("BonzoVaultV7Factory", "vaultFactory")
    vault = migration.clone(vault_factory.functions.cloneVault, "BonzoVaultV7", "bonzoSupplyVault")

    common_addresses = (
        vault.address,
        migration.get_address("keeper"),
        migration.account,  # strategist
        addys["SAUCERSWAP_ROUTER"],
        migration.get_address("beefyFeeRecipient"),
        migration.get_address("beefyFeeConfig"),
    )

    migration.execute(
        strategy.functions.initialize,
        tokens["BONZO"],  # want
        tokens["ABONZO"],
        addys["BONZO_LENDING_POOL"],
        addys["BONZO_REWARDS_CONTROLLER"],
        tokens["BONZO"],  # output
        info["is_hedera_token"],
        common_addresses,
        done=lambda: migration.initialized(strategy),
    )

    migration.execute(
        vault.functions.initialize,
        strategy,
        info["name"],
        info["symbol"],
        info["approval_delay"],
        info["is_hedera_token"],
        done=lambda: migration.initialized(vault),
    )
