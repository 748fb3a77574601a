import dataclasses
import os

import pytest
from eth_utils import to_checksum_address

from conf_mock import fake_address
from scripts.utils.chain import TransactionFailed
from scripts.utils.migration_runner import MigrationError
from scripts.utils.registry import MissingDependency, RegistryLocked, load

WHBAR = "0x0000000000000000000000000000000000003ad2"
SAUCE = "0x0000000000000000000000000000000000120f46"

CORE_KEYS = ("vaultOwner", "strategyOwner", "multicall", "beefyFeeConfig", "vaultFactory")

ROLE_KEYS = ("keeper", "devMultisig", "treasuryMultisig", "treasurer", "launchpoolOwner", "beefyFeeRecipient", "voter")


#############
# Full runs #
#############


def test_core_deployment_from_empty_registry(runner, deploy_args, client, registry_path):
    """Roles, timelocks, multicall, fee configurator and vault factory"""
    runner.run(deploy_args, end_timestamp="0004")

    registry = load(registry_path)
    addresses = [registry.get(key) for key in CORE_KEYS]
    assert len(set(addresses)) == len(CORE_KEYS)

    for key in ROLE_KEYS:
        assert registry.has(key)
    assert registry.get("treasurer") == deploy_args.roles.treasury_multisig

    # the factory is built on top of both vault implementations
    (_, factory_args), = client.deployed("BonzoVaultV7Factory")
    assert factory_args == (registry.get("vaultV7"), registry.get("vaultV7MultiToken"))

    # only later migrations touch the swapper and the supply vault
    assert not registry.has("beefySwapper")
    assert not registry.has("bonzoSupplyVault")


def test_timelocks_renounce_deployer_admin(runner, deploy_args, client, registry_path):
    runner.run(deploy_args, end_timestamp="0001")

    registry = load(registry_path)
    renounced = client.calls("renounceRole")
    assert {tx[0] for tx in renounced} == {registry.get("vaultOwner"), registry.get("strategyOwner")}
    assert all(tx[2][1] == client.address for tx in renounced)

    (_, vault_owner_args), (_, strategy_owner_args) = client.deployed("TimelockController")
    params = deploy_args.blueprint.PARAMS
    assert vault_owner_args == (params["VAULT_OWNER_DELAY"], [deploy_args.roles.dev_multisig], [deploy_args.roles.keeper])
    assert strategy_owner_args[0] == params["STRAT_OWNER_DELAY"]


def test_fee_configurator_handed_to_dev_multisig(runner, deploy_args, client, registry_path):
    runner.run(deploy_args, end_timestamp="0003")

    fee_config = load(registry_path).get("beefyFeeConfig")
    assert [tx[1] for tx in client.transactions if tx[0] == fee_config] == [
        "initialize", "setFeeCategory", "transferOwnership"]
    assert client.calls("transferOwnership")[-1][2] == (deploy_args.roles.dev_multisig,)


def test_supply_vault_cloned_from_factory_event(runner, deploy_args, client, registry_path):
    runner.run(deploy_args)

    registry = load(registry_path)
    vault = registry.get("bonzoSupplyVault")
    strategy = registry.get("bonzoSupplyStrategy")

    # the clone address comes from the factory's ProxyCreated event, not a deployment
    (factory, _, _, _), = client.calls("cloneVault")
    assert factory == registry.get("vaultFactory")
    assert len(client.deployed("BonzoVaultV7")) == 1
    assert client.contracts[vault].name == "BonzoVaultV7"

    strategy_init = [tx for tx in client.calls("initialize") if tx[0] == strategy]
    assert len(strategy_init) == 1
    common_addresses = strategy_init[0][2][-1]
    assert common_addresses[0] == vault
    assert common_addresses[1] == registry.get("keeper")
    assert common_addresses[5] == registry.get("beefyFeeConfig")

    vault_init, = [tx for tx in client.calls("initialize") if tx[0] == vault]
    assert vault_init[2][:3] == (strategy, "Beefy BONZO Supply", "bvBONZO-SUPPLY")


def test_clm_strategy_linked_to_libraries(runner, deploy_args, client, registry_path):
    runner.run(deploy_args)

    registry = load(registry_path)
    clm_lib, lari_lib = registry.get("saucerSwapCLMLib"), registry.get("saucerSwapLariLib")
    assert client.libraries["SaucerSwapCLMLib"] is None
    assert client.libraries["SaucerSwapLariLib"] == {"SaucerSwapCLMLib": clm_lib}
    assert client.libraries["SaucerSwapLariRewardsCLMStrategy"] == {
        "SaucerSwapCLMLib": clm_lib, "SaucerSwapLariLib": lari_lib}

    vault, strategy = registry.get("clmHbarSauceVault"), registry.get("clmHbarSauceStrategy")
    (factory, _, _, _), = client.calls("cloneVaultCLM")
    assert factory == registry.get("vaultFactory")
    assert client.contracts[vault].name == "BeefyVaultConcLiqHedera"

    assert [tx[1] for tx in client.transactions if tx[0] == strategy] == [
        "initialize", "setDeviation", "setTwapInterval", "setRewardRoute", "setRewardRoute"]
    (_, _, (init_params, common_addresses), _), = [tx for tx in client.calls("initialize") if tx[0] == strategy]
    assert init_params[2] == 200
    assert init_params[5] == registry.get("beefyOracle")
    assert common_addresses[0] == vault
    assert common_addresses[2] == registry.get("keeper")

    vault_init, = [tx for tx in client.calls("initialize") if tx[0] == vault]
    assert vault_init[2][:4] == (strategy, "Beefy CLM LARI SaucerSwap Testnet", "bCLM-LARI-SS-T",
                                 registry.get("beefyOracle"))

    # WHBAR is both token0 and the native token
    whbar, sauce = to_checksum_address(WHBAR), to_checksum_address(SAUCE)
    assert [tx[2] for tx in client.calls("setRewardRoute")] == [
        (sauce, [sauce, whbar], [sauce, sauce]),
        (whbar, [whbar, whbar], [whbar, sauce]),
    ]


def test_clm_migration_without_configured_vaults(runner, deploy_args, client, registry_path):
    deploy_args.blueprint.CLM_DEPLOYMENTS = ()

    runner.run(deploy_args)

    assert not load(registry_path).has("saucerSwapCLMLib")
    assert client.calls("cloneVaultCLM") == []


def test_manifest_written_per_migration(runner, deploy_args, read_manifest, history_dir):
    runner.run(deploy_args, end_timestamp="0003")

    manifest = read_manifest("0003")
    assert list(manifest["addresses"]) == ["beefyFeeConfig"]
    assert len(manifest["transactions"]) == 4
    assert not [f for f in os.listdir(history_dir) if f.endswith("-log.json")]


#####################
# Missing addresses #
#####################


def test_missing_dependency_before_any_transaction(runner, deploy_args, client):
    """A migration needing an unrecorded address fails before sending anything"""
    with pytest.raises(MigrationError) as e:
        runner.run(deploy_args, start_timestamp="0100")

    assert e.value.failure_timestamp == "0100"
    assert isinstance(e.value.__cause__, MissingDependency)
    assert e.value.__cause__.key == "vaultFactory"
    assert client.deployments == []
    assert client.transactions == []


def test_missing_roles_for_timelocks(runner, deploy_args, client):
    with pytest.raises(MigrationError) as e:
        runner.run(deploy_args, start_timestamp="0001", end_timestamp="0001")

    assert isinstance(e.value.__cause__, MissingDependency)
    assert client.deployments == []


##########
# Reruns #
##########


def test_rerun_deploys_nothing(runner, deploy_args, client):
    """Running every migration again against a complete registry sends no transaction"""
    runner.run(deploy_args)
    deployments, transactions = len(client.deployments), len(client.transactions)

    runner.run(deploy_args, start_timestamp="0000")

    assert len(client.deployments) == deployments
    assert len(client.transactions) == transactions


def test_resume_after_latest_manifest(runner, deploy_args, client):
    runner.run(deploy_args, end_timestamp="0002")
    assert len(client.deployed("Multicall")) == 1

    runner.run(deploy_args, end_timestamp="0003")

    assert len(client.deployed("Multicall")) == 1
    assert len(client.deployed("TimelockController")) == 2
    assert len(client.deployed("BeefyFeeConfigurator")) == 1


def test_resume_after_failed_transaction(runner, deploy_args, client, registry_path, history_dir):
    """A crash mid-migration keeps what was mined; the rerun sends only the rest"""
    client.failures["setFeeCategory"] = TransactionFailed("setFeeCategory reverted", reason="boom")

    with pytest.raises(MigrationError) as e:
        runner.run(deploy_args, end_timestamp="0003")
    assert e.value.failure_timestamp == "0003"
    assert "boom" in str(e.value)

    fee_config = load(registry_path).get("beefyFeeConfig")
    assert os.path.exists(os.path.join(history_dir, "0003-log.json"))

    # initialize went through before the crash
    client.contract(fee_config, owner=client.address)
    del client.failures["setFeeCategory"]
    runner.run(deploy_args, end_timestamp="0003")

    assert load(registry_path).get("beefyFeeConfig") == fee_config
    assert len(client.deployed("BeefyFeeConfigurator")) == 1
    assert [tx[1] for tx in client.transactions if tx[0] == fee_config] == [
        "initialize", "setFeeCategory", "transferOwnership"]
    assert not os.path.exists(os.path.join(history_dir, "0003-log.json"))


def _configured_on_chain(client, registry, roles):
    """Contract state after every step of the v1 migrations went through"""
    for key in ("vaultOwner", "strategyOwner"):
        client.contract(registry.get(key), hasRole=lambda role, account: False)
    client.contract(registry.get("beefyFeeConfig"), owner=roles.dev_multisig)
    for key in ("beefySwapper", "beefyOracle"):
        client.contract(registry.get(key), owner=roles.keeper)
    for key in ("bonzoSupplyStrategy", "bonzoSupplyVault"):
        client.contract(registry.get(key), owner=client.address)
    client.contract(registry.get("clmHbarSauceVault"), owner=client.address)
    client.contract(registry.get("clmHbarSauceStrategy"), owner=client.address, maxTickDeviation=200, twapInterval=300)


def _remove_history(history_dir):
    for filename in os.listdir(history_dir):
        if filename.endswith("-manifest.json"):
            os.remove(os.path.join(history_dir, filename))


def test_rerun_without_history_checks_the_chain(runner, deploy_args, client, roles, registry_path, history_dir,
                                                read_manifest):
    """A registry without manifests sends nothing the chain already has"""
    runner.run(deploy_args)
    deployments, transactions = len(client.deployments), len(client.transactions)
    _configured_on_chain(client, load(registry_path), roles)
    _remove_history(history_dir)

    runner.run(deploy_args)

    # reward routes have no read back and are set again
    assert [tx[1] for tx in client.transactions[transactions:]] == ["setRewardRoute"] * 2
    assert len(client.deployments) == deployments
    assert read_manifest("0003")["transactions"][1:] == ["applied on chain"] * 3


def test_rerun_without_history_sends_missing_steps(runner, deploy_args, client, roles, registry_path, history_dir):
    runner.run(deploy_args)
    registry = load(registry_path)
    _configured_on_chain(client, registry, roles)
    # ownership of the fee configurator was never handed over
    fee_config = registry.get("beefyFeeConfig")
    client.contract(fee_config, owner=client.address)
    _remove_history(history_dir)
    transactions = len(client.transactions)

    runner.run(deploy_args)

    sent = [tx for tx in client.transactions[transactions:] if tx[1] != "setRewardRoute"]
    assert [tx[1] for tx in sent] == ["setFeeCategory", "transferOwnership"]
    assert {tx[0] for tx in sent} == {fee_config}


def test_ignore_logs_resends_executions(runner, deploy_args, client):
    runner.run(deploy_args, end_timestamp="0003")
    deploy_args.ignore_logs = True

    runner.run(deploy_args, start_timestamp="0003", end_timestamp="0003")

    # deployments are still skipped through the registry
    assert len(client.deployed("BeefyFeeConfigurator")) == 1
    assert len(client.calls("setFeeCategory")) == 2


def test_recorded_role_conflict(runner, deploy_args, roles, registry_path):
    runner.run(deploy_args, end_timestamp="0000")
    deploy_args.roles = dataclasses.replace(roles, keeper=fake_address(0xBEEF))

    with pytest.raises(MigrationError) as e:
        runner.run(deploy_args, start_timestamp="0000", end_timestamp="0000")

    assert "already recorded" in str(e.value)
    assert load(registry_path).get("keeper") == roles.keeper


def test_concurrent_run_is_refused(runner, deploy_args, client, registry_path):
    os.makedirs(os.path.dirname(registry_path), exist_ok=True)
    with open(f"{registry_path}.lock", "w") as lock:
        lock.write('{"pid": 1, "run_id": "other"}')

    with pytest.raises(RegistryLocked):
        runner.run(deploy_args)

    assert client.deployments == []
