"""
Deposit / withdraw / harvest cycle against a deployed vault.

Each step takes a balance snapshot before and after the transaction and
checks the share accounting seen from the outside. All failed checks of a
step are collected and raised together as `LifecycleInvariantError`.
"""

from dataclasses import dataclass

from scripts.utils import log
from scripts.utils.abis import ERC20_ABI, STRATEGY_ABI, VAULT_ABI
from scripts.utils.address import validate_address


class LifecycleInvariantError(AssertionError):
    def __init__(self, step, failures):
        self.step = step
        self.failures = failures
        super().__init__(f"{step} broke {len(failures)} invariant(s):\n  " + "\n  ".join(failures))


@dataclass(frozen=True)
class BalanceSnapshot:
    want: int
    shares: int
    total_supply: int
    vault_balance: int


def snapshot(vault, want, user):
    return BalanceSnapshot(
        want=want.functions.balanceOf(user).call(),
        shares=vault.functions.balanceOf(user).call(),
        total_supply=vault.functions.totalSupply().call(),
        vault_balance=vault.functions.balance().call(),
    )


def check_deposit(before: BalanceSnapshot, after: BalanceSnapshot, amount):
    failures = []
    if before.want - after.want != amount:
        failures.append(f"want balance moved by {before.want - after.want}, expected {amount}")
    minted = after.shares - before.shares
    if minted <= 0:
        failures.append(f"no shares minted (delta {minted})")
    if after.total_supply - before.total_supply != minted:
        failures.append(f"totalSupply moved by {after.total_supply - before.total_supply}, user shares by {minted}")
    if failures:
        raise LifecycleInvariantError("deposit", failures)
    return minted


def check_withdraw(before: BalanceSnapshot, after: BalanceSnapshot, shares):
    failures = []
    if before.shares - after.shares != shares:
        failures.append(f"user shares moved by {before.shares - after.shares}, expected {shares}")
    if before.total_supply - after.total_supply != shares:
        failures.append(f"totalSupply moved by {before.total_supply - after.total_supply}, expected {shares}")
    received = after.want - before.want
    if received <= 0:
        failures.append(f"no want returned (delta {received})")
    if failures:
        raise LifecycleInvariantError("withdraw", failures)
    return received


def run_lifecycle(client, vault_address, amount, harvest=False, value=0, gas_limit=3_000_000):
    """
    Approves the vault when needed, deposits `amount` of want, withdraws
    every share minted by the deposit and optionally harvests the strategy.
    `value` is attached to deposit and withdraw for Hedera-native vaults.
    Returns a summary of the cycle.
    """
    vault = client.at(VAULT_ABI, validate_address("vault address", vault_address))
    if amount <= 0:
        raise ValueError(f"Deposit amount must be positive, got {amount}")

    want = client.at(ERC20_ABI, vault.functions.want().call())
    user = client.address

    before = snapshot(vault, want, user)
    log.info(f"Before: {before}")
    if before.want < amount:
        raise ValueError(f"Account holds {before.want} want, cannot deposit {amount}")

    allowance = want.functions.allowance(user, vault.address).call()
    if allowance < amount:
        log.h2("Approving vault")
        client.transact(want.functions.approve(vault.address, amount), gas_limit=gas_limit)

    log.h2(f"Depositing {amount}")
    client.transact(vault.functions.deposit(amount), value=value, gas_limit=gas_limit)
    deposited = snapshot(vault, want, user)
    minted = check_deposit(before, deposited, amount)
    log.info(f"Minted {minted} shares, price per share {vault.functions.getPricePerFullShare().call()}")

    harvest_receipt = None
    if harvest:
        log.h2("Harvesting")
        strategy = client.at(STRATEGY_ABI, vault.functions.strategy().call())
        harvest_receipt = client.transact(strategy.get_function_by_signature("harvest()")(), gas_limit=5_000_000)
        log.info(f"Vault balance after harvest: {vault.functions.balance().call()}")

    log.h2(f"Withdrawing {minted} shares")
    withdraw_before = snapshot(vault, want, user)
    client.transact(vault.functions.withdraw(minted), value=value, gas_limit=gas_limit)
    after = snapshot(vault, want, user)
    received = check_withdraw(withdraw_before, after, minted)
    log.info(f"Received {received} want back")

    return {
        "deposited": amount,
        "shares": minted,
        "withdrawn": received,
        "harvested": harvest_receipt is not None,
        "before": before,
        "after": after,
    }
