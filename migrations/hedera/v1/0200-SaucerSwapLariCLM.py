from scripts.utils.address import same_address
from scripts.utils.migration import Migration


def reward_route(reward, target, native):
    # rewards are swapped to the LP tokens directly or through the native token
    if same_address(reward, target) or same_address(reward, native) or same_address(target, native):
        return [reward, target]
    return [reward, native, target]


def migrate(migration: Migration):
    migration.log.h2("SaucerSwap CLM vaults with LARI rewards")

    migration.require("vaultFactory", "beefyOracle", "beefyFeeConfig", "beefyFeeRecipient", "keeper")

    deployments = migration.blueprint.CLM_DEPLOYMENTS
    if not deployments:
        migration.log.h3(f"No CLM vaults configured for `{migration.blueprint.network}`")
        return

    clm_lib = migration.deploy("SaucerSwapCLMLib", label="saucerSwapCLMLib")
    lari_lib = migration.deploy(
        "SaucerSwapLariLib",
        label="saucerSwapLariLib",
        libraries={"SaucerSwapCLMLib": clm_lib},
    )

    vault_factory = migration.get_contract("BeefyVaultV7FactoryHedera", "vaultFactory")
    beefy_oracle = migration.get_address("beefyOracle")
    unirouter = migration.blueprint.INTEGRATION_ADDYS["SAUCERSWAP_ROUTER"]

    for clm in deployments:
        label = clm["label"]
        vault = migration.clone(vault_factory.functions.cloneVaultCLM, "BeefyVaultConcLiqHedera", f"clm{label}Vault")
        strategy = migration.deploy(
            "SaucerSwapLariRewardsCLMStrategy",
            label=f"clm{label}Strategy",
            libraries={"SaucerSwapCLMLib": clm_lib, "SaucerSwapLariLib": lari_lib},
        )

        init_params = (
            clm["pool"],
            clm["quoter"],
            clm["position_width"],
            clm["native"],
            clm["factory"],
            beefy_oracle,
            list(clm["reward_tokens"]),
        )
        common_addresses = (
            vault.address,
            unirouter,
            migration.get_address("keeper"),
            migration.account,  # strategist
            migration.get_address("beefyFeeRecipient"),
            migration.get_address("beefyFeeConfig"),
        )
        migration.execute(
            strategy.functions.initialize,
            init_params,
            common_addresses,
            done=lambda: migration.initialized(strategy),
        )

        migration.execute(
            vault.functions.initialize,
            strategy,
            clm["name"],
            clm["symbol"],
            beefy_oracle,
            clm["token0"],
            clm["token1"],
            done=lambda: migration.initialized(vault),
        )

        deviation, twap = clm["max_tick_deviation"], clm["twap_interval"]
        migration.execute(
            strategy.functions.setDeviation,
            deviation,
            done=lambda: strategy.functions.maxTickDeviation().call() == deviation,
        )
        migration.execute(
            strategy.functions.setTwapInterval,
            twap,
            done=lambda: strategy.functions.twapInterval().call() == twap,
        )

        for reward in clm["reward_tokens"]:
            migration.execute(
                strategy.functions.setRewardRoute,
                reward,
                reward_route(reward, clm["token0"], clm["native"]),
                reward_route(reward, clm["token1"], clm["native"]),
            )
