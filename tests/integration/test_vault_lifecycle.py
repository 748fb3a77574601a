import os

import pytest

from scripts.manage.check_account import check_account
from scripts.utils.lifecycle import run_lifecycle
from scripts.utils.registry import load


@pytest.fixture(scope="session")
def vault_address(network):
    if os.environ.get("VAULT_ADDRESS"):
        return os.environ["VAULT_ADDRESS"]
    registry_path = os.path.join("migration_history", f"hedera-{network}", "v1", "deployed-addresses.json")
    return load(registry_path).get("bonzoSupplyVault")


@pytest.fixture(scope="session")
def deposit_amount():
    return int(os.environ.get("LIFECYCLE_AMOUNT", 10 ** 6))


@pytest.testnet
@pytest.mainnet
def test_signer_is_funded(live_client):
    info = check_account(live_client)

    assert info["balance"] > 0


@pytest.testnet
def test_deposit_withdraw(live_client, vault_address, deposit_amount):
    summary = run_lifecycle(live_client, vault_address, deposit_amount)

    assert summary["shares"] > 0
    assert summary["withdrawn"] > 0


@pytest.testnet
def test_deposit_harvest_withdraw(live_client, vault_address, deposit_amount):
    summary = run_lifecycle(live_client, vault_address, deposit_amount, harvest=True)

    assert summary["harvested"]
