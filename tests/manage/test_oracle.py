import pytest
from eth_abi import decode, encode

from constants import TEST_ACCOUNT, ZERO_ADDRESS
from conf_mock import fake_address
from scripts.manage.refresh_oracle_price import RefreshPriceRequest, refresh_price
from scripts.manage.set_oracle import Hop, SetOracleRequest, set_oracle
from scripts.utils.address import InvalidAddress
from scripts.utils.operations import NotOwner, PreconditionFailed

BEEFY_ORACLE = fake_address(0xD001)
SUB_ORACLE = fake_address(0xD002)
FEED = fake_address(0xD003)
FACTORY = fake_address(0xD004)
WHBAR = fake_address(0x3AD2)
SAUCE = fake_address(0x120F46)
USDC = fake_address(0x6E7)
POOLS = {
    (WHBAR, SAUCE, 3000): fake_address(0xE001),
    (SAUCE, USDC, 1500): fake_address(0xE002),
}


@pytest.fixture
def beefy_oracle(client):
    sub_oracles = {}
    prices = {}
    oracle = client.contract(
        BEEFY_ORACLE,
        owner=TEST_ACCOUNT,
        subOracle=lambda token: sub_oracles.get(token, (ZERO_ADDRESS, b"")),
        getPriceInUSD=lambda token: prices.get(token, 0),
    )
    client.contract(FACTORY, getPool=lambda a, b, fee: POOLS.get((a, b, fee), ZERO_ADDRESS))

    def set_sub_oracle(call, value):
        token, sub_oracle, data = call.args
        sub_oracles[token] = (sub_oracle, data)

    def refresh(call, value):
        prices[call.args[0]] = 7 * 10 ** 16

    client.handlers.update({"setOracle": set_sub_oracle, "getFreshPriceInUSD": refresh})
    oracle.sub_oracles = sub_oracles
    oracle.prices = prices
    return oracle


##############
# Set oracle #
##############


def test_set_chainlink_oracle(client, beefy_oracle):
    result = set_oracle(client, SetOracleRequest.build(BEEFY_ORACLE, WHBAR, "chainlink", SUB_ORACLE, feed=FEED))

    assert result.executed
    (_, _, (token, sub_oracle, data), _), = client.calls("setOracle")
    assert (token, sub_oracle) == (WHBAR, SUB_ORACLE)
    assert [a.lower() for a in decode(["address"], data)] == [FEED.lower()]


def test_set_supra_oracle_prices_the_token(client, beefy_oracle):
    set_oracle(client, SetOracleRequest.build(BEEFY_ORACLE, SAUCE, "supra", SUB_ORACLE))

    (_, _, (_, _, data), _), = client.calls("setOracle")
    assert data == encode(["address", "address"], [SUB_ORACLE, SAUCE])


def test_set_uniswap_v3_oracle_resolves_pools(client, beefy_oracle):
    request = SetOracleRequest.build(
        BEEFY_ORACLE, None, "uniswap-v3", SUB_ORACLE,
        path=[f"{WHBAR}:{SAUCE}:3000", f"{SAUCE}:{USDC}:1500"], twaps=[300, 600], factory=FACTORY)

    set_oracle(client, request)

    (_, _, (token, _, data), _), = client.calls("setOracle")
    assert token == USDC
    tokens, pools, twaps = decode(["address[]", "address[]", "uint256[]"], data)
    assert [t.lower() for t in tokens] == [WHBAR.lower(), SAUCE.lower(), USDC.lower()]
    assert [p.lower() for p in pools] == [POOLS[(WHBAR, SAUCE, 3000)].lower(), POOLS[(SAUCE, USDC, 1500)].lower()]
    assert twaps == (300, 600)


def test_set_uniswap_v3_oracle_without_pool(client, beefy_oracle):
    request = SetOracleRequest.build(
        BEEFY_ORACLE, None, "uniswap-v3", SUB_ORACLE, path=[f"{USDC}:{WHBAR}:500"], twaps=[300], factory=FACTORY)

    with pytest.raises(PreconditionFailed, match="No pool"):
        set_oracle(client, request)

    assert client.transactions == []


def test_set_oracle_noop_when_already_set(client, beefy_oracle):
    request = SetOracleRequest.build(BEEFY_ORACLE, WHBAR, "chainlink", SUB_ORACLE, feed=FEED)
    beefy_oracle.sub_oracles[WHBAR] = (SUB_ORACLE.lower(), encode(["address"], [FEED]))

    assert not set_oracle(client, request).executed
    assert client.transactions == []


def test_set_oracle_replaces_other_feed(client, beefy_oracle):
    beefy_oracle.sub_oracles[WHBAR] = (SUB_ORACLE, encode(["address"], [fake_address(0xD0D0)]))

    assert set_oracle(client, SetOracleRequest.build(BEEFY_ORACLE, WHBAR, "chainlink", SUB_ORACLE, feed=FEED)).executed


def test_set_oracle_refused_for_strangers(client, beefy_oracle):
    beefy_oracle.state["owner"] = fake_address(0xF00)

    with pytest.raises(NotOwner):
        set_oracle(client, SetOracleRequest.build(BEEFY_ORACLE, WHBAR, "supra", SUB_ORACLE))


@pytest.mark.parametrize("kwargs, error", [
    (dict(token=WHBAR, kind="pyth"), ValueError),
    (dict(token=WHBAR, kind="chainlink"), InvalidAddress),
    (dict(token=WHBAR, kind="uniswap-v3", factory=FACTORY, twaps=[300]), ValueError),
    (dict(token=None, kind="uniswap-v3", factory=FACTORY, path=[f"{WHBAR}:{SAUCE}:3000"]), ValueError),
    (dict(token=WHBAR, kind="uniswap-v3", factory=FACTORY, path=[f"{WHBAR}:{SAUCE}:3000"], twaps=[300]),
     ValueError),
    (dict(token=None, kind="uniswap-v3", factory=FACTORY, path=[f"{WHBAR}:{SAUCE}:3000", f"{USDC}:{WHBAR}:500"],
          twaps=[300, 300]), ValueError),
])
def test_set_oracle_rejects_bad_input(kwargs, error):
    token = kwargs.pop("token")
    kind = kwargs.pop("kind")
    with pytest.raises(error):
        SetOracleRequest.build(BEEFY_ORACLE, token, kind, SUB_ORACLE, **kwargs)


@pytest.mark.parametrize("hop", [f"{WHBAR}:{SAUCE}", f"{WHBAR}:{SAUCE}:0", f"{WHBAR}:{SAUCE}:{2 ** 24}"])
def test_hop_rejects_bad_input(hop):
    with pytest.raises(ValueError):
        Hop.parse(hop)


#################
# Refresh price #
#################


def test_refresh_price(client, beefy_oracle):
    result = refresh_price(client, RefreshPriceRequest.build(BEEFY_ORACLE, WHBAR))

    assert result.executed
    assert client.calls("getFreshPriceInUSD") == [(BEEFY_ORACLE, "getFreshPriceInUSD", (WHBAR,), 0)]
    assert result.message == f"Price 0 -> {7 * 10 ** 16}"


def test_refresh_price_without_price_reads(client, beefy_oracle):
    del beefy_oracle.state["getPriceInUSD"]

    result = refresh_price(client, RefreshPriceRequest.build(BEEFY_ORACLE, WHBAR))

    assert result.executed
    assert result.message == "Price None -> None"
