"""
Minimal ABI fragments for the operational scripts.

Only the methods the scripts call are listed; the full ABIs live in the
Hardhat artifacts used by the migrations.
"""


def _param(abi_type, name=""):
    return {"name": name, "type": abi_type}


def view(name, inputs=(), outputs=()):
    return {
        "type": "function",
        "name": name,
        "stateMutability": "view",
        "inputs": [_param(t, n) for n, t in inputs],
        "outputs": [_param(t, n) for n, t in outputs],
    }


def function(name, inputs=(), outputs=(), payable=False):
    return {
        "type": "function",
        "name": name,
        "stateMutability": "payable" if payable else "nonpayable",
        "inputs": [_param(t, n) for n, t in inputs],
        "outputs": [_param(t, n) for n, t in outputs],
    }


OWNABLE_ABI = [
    view("owner", outputs=[("", "address")]),
    function("transferOwnership", [("newOwner", "address")]),
]

STRATEGY_ABI = OWNABLE_ABI + [
    view("keeper", outputs=[("", "address")]),
    function("setKeeper", [("_keeper", "address")]),
    view("paused", outputs=[("", "bool")]),
    function("panic"),
    function("unpause"),
    view("unirouter", outputs=[("", "address")]),
    function("setUnirouter", [("_unirouter", "address")]),
    view("vault", outputs=[("", "address")]),
    view("want", outputs=[("", "address")]),
    view("balanceOf", outputs=[("", "uint256")]),
    view("balanceOfWant", outputs=[("", "uint256")]),
    view("balanceOfPool", outputs=[("", "uint256")]),
    function("harvest", payable=True),
    function("associateToken", [("token", "address")]),
]

# SaucerSwap concentrated liquidity strategies
CLM_STRATEGY_ABI = OWNABLE_ABI + [
    view("keeper", outputs=[("", "address")]),
    view("paused", outputs=[("", "bool")]),
    view("isCalm", outputs=[("", "bool")]),
    view("balances", outputs=[("token0Bal", "uint256"), ("token1Bal", "uint256")]),
    view("getMintFee", outputs=[("", "uint256")]),
    view("pool", outputs=[("", "address")]),
    view("unirouter", outputs=[("", "address")]),
    function("setUnirouter", [("_unirouter", "address")]),
    function("panic", [("_minAmount0", "uint256"), ("_minAmount1", "uint256")]),
    function("reversePanic", payable=True),
    view("positionWidth", outputs=[("", "int24")]),
    function("setPositionWidth", [("_width", "int24")]),
    view("maxTickDeviation", outputs=[("", "int56")]),
    function("setDeviation", [("_maxDeviation", "int56")]),
    function("harvest", payable=True),
    {
        "type": "function",
        "name": "harvest",
        "stateMutability": "payable",
        "inputs": [_param("address", "_callFeeRecipient")],
        "outputs": [],
    },
]

VAULT_ABI = [
    view("strategy", outputs=[("", "address")]),
    view("want", outputs=[("", "address")]),
    view("balance", outputs=[("", "uint256")]),
    view("totalSupply", outputs=[("", "uint256")]),
    view("balanceOf", [("account", "address")], [("", "uint256")]),
    view("getPricePerFullShare", outputs=[("", "uint256")]),
    function("deposit", [("_amount", "uint256")], payable=True),
    function("withdraw", [("_shares", "uint256")], payable=True),
]

ERC20_ABI = [
    view("name", outputs=[("", "string")]),
    view("symbol", outputs=[("", "string")]),
    view("decimals", outputs=[("", "uint8")]),
    view("balanceOf", [("account", "address")], [("", "uint256")]),
    view("allowance", [("owner", "address"), ("spender", "address")], [("", "uint256")]),
    function("approve", [("spender", "address"), ("amount", "uint256")], [("", "bool")]),
]

UNIV3_POOL_ABI = [
    view("tickSpacing", outputs=[("", "int24")]),
]

UNIV3_FACTORY_ABI = [
    view("getPool", [("tokenA", "address"), ("tokenB", "address"), ("fee", "uint24")], [("pool", "address")]),
]

BEEFY_ORACLE_ABI = OWNABLE_ABI + [
    view("subOracle", [("", "address")], [("oracle", "address"), ("data", "bytes")]),
    view("getPriceInUSD", [("_token", "address")], [("price", "uint256")]),
    function("getFreshPriceInUSD", [("_token", "address")], [("price", "uint256"), ("success", "bool")]),
    function("setOracle", [("_token", "address"), ("_oracle", "address"), ("_data", "bytes")]),
]
