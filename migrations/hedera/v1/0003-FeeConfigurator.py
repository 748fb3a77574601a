from scripts.utils.migration import Migration


def migrate(migration: Migration):
    migration.log.h2("Fee configurator")

    keeper = migration.get_address("keeper")
    dev_multisig = migration.get_address("devMultisig")
    params = migration.blueprint.PARAMS

    fee_config = migration.deploy("BeefyFeeConfigurator", label="beefyFeeConfig")

    migration.execute(
        fee_config.functions.initialize,
        keeper,
        params["FEE_TOTAL_LIMIT"],
        done=lambda: migration.initialized(fee_config),
    )
    # owner-only, so it can only have run before the handover below
    migration.execute(
        fee_config.functions.setFeeCategory,
        params["FEE_CATEGORY_ID"],
        params["FEE_TOTAL_LIMIT"],
        params["FEE_CALL"],
        params["FEE_STRATEGIST"],
        params["FEE_CATEGORY_LABEL"],
        True,  # active
        True,  # adjust total fee
        done=lambda: not migration.owned_by(fee_config, migration.account),
    )
    migration.execute(
        fee_config.functions.transferOwnership,
        dev_multisig,
        done=lambda: migration.owned_by(fee_config, dev_multisig),
    )
