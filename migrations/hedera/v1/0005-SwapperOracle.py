from scripts.utils.migration import Migration


def migrate(migration: Migration):
    migration.log.h2("Swapper and oracle")

    keeper = migration.get_address("keeper")

    beefy_oracle = migration.deploy("BeefyOracle", label="beefyOracle")
    beefy_swapper = migration.deploy("BeefySwapperWithHTS", label="beefySwapper")

    migration.execute(
        beefy_swapper.functions.initialize,
        beefy_oracle,
        migration.blueprint.PARAMS["SWAPPER_TOTAL_LIMIT"],
        done=lambda: migration.initialized(beefy_swapper),
    )
    migration.execute(
        beefy_swapper.functions.transferOwnership, keeper, done=lambda: migration.owned_by(beefy_swapper, keeper))

    migration.execute(beefy_oracle.functions.initialize, done=lambda: migration.initialized(beefy_oracle))
    migration.execute(
        beefy_oracle.functions.transferOwnership, keeper, done=lambda: migration.owned_by(beefy_oracle, keeper))
