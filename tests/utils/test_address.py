import pytest

from constants import BAD_CHECKSUM_ADDRESS, TEST_ACCOUNT, ZERO_ADDRESS
from conf_mock import FakeContract
from scripts.utils.address import InvalidAddress, is_zero_address, same_address, validate_address


def test_validate_checksums():
    assert validate_address("keeper", TEST_ACCOUNT.lower()) == TEST_ACCOUNT
    assert validate_address("keeper", TEST_ACCOUNT) == TEST_ACCOUNT


def test_validate_accepts_contract_handles():
    assert validate_address("vault", FakeContract(TEST_ACCOUNT)) == TEST_ACCOUNT


@pytest.mark.parametrize("value, reason", [
    (None, "missing"),
    ("", "missing"),
    (ZERO_ADDRESS, "zero address"),
    ("0x1234", "not a valid"),
    (TEST_ACCOUNT[2:], "not a valid"),
    (BAD_CHECKSUM_ADDRESS, "bad checksum"),
    (123, "not a valid"),
])
def test_validate_rejects(value, reason):
    with pytest.raises(InvalidAddress) as e:
        validate_address("strategy address", value)

    assert e.value.label == "strategy address"
    assert reason in str(e.value)


def test_zero_allowed_when_asked():
    assert validate_address("placeholder", ZERO_ADDRESS, allow_zero=True) == ZERO_ADDRESS


def test_helpers():
    assert is_zero_address(None)
    assert is_zero_address(ZERO_ADDRESS)
    assert not is_zero_address(TEST_ACCOUNT)
    assert same_address(TEST_ACCOUNT, TEST_ACCOUNT.lower())
    assert not same_address(TEST_ACCOUNT, None)
