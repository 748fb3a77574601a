# time (seconds)
HOUR = 3_600

# keccak256("TIMELOCK_ADMIN_ROLE")
TIMELOCK_ADMIN_ROLE = "0x5f58e3a2316349923ce3780f8d587db2d72378aed66a8261c916544fa6846ca5"

# HBAR: 1 tinybar = 10^10 weibar on the JSON-RPC relay
WEIBARS_PER_TINYBAR = 10 ** 10

NETWORKS = ("local", "testnet", "mainnet")

RPC_URLS = {
    "local": "http://127.0.0.1:8545",
    "testnet": "https://testnet.hashio.io/api",
    "mainnet": "https://mainnet.hashio.io/api",
}


# `default` is deep merged under every network entry
PARAMS = {
    "default": {
        # timelocks (seconds)
        "VAULT_OWNER_DELAY": 0,
        "STRAT_OWNER_DELAY": 6 * HOUR,
        # fee configurator (18 decimals, 1e18 = 100%)
        "FEE_TOTAL_LIMIT": 95_000_000_000_000_000,
        "FEE_CALL": 500_000_000_000_000,
        "FEE_STRATEGIST": 5_000_000_000_000_000,
        "FEE_CATEGORY_ID": 0,
        "FEE_CATEGORY_LABEL": "default",
        # swapper
        "SWAPPER_TOTAL_LIMIT": 95_000_000_000_000_000,
        # gas limits
        "GAS_LIMIT_DEPLOY": 5_000_000,
        "GAS_LIMIT_CALL": 3_000_000,
        "GAS_LIMIT_ADMIN": 1_000_000,
        # confirmation polling
        "CONFIRMATION": {
            "timeout": 180.0,
            "poll_interval": 1.0,
            "max_interval": 15.0,
            "backoff": 2.0,
            "max_attempts": 30,
        },
    },
    "local": {
        "STRAT_OWNER_DELAY": 0,
        "CONFIRMATION": {
            "timeout": 30.0,
            "poll_interval": 0.2,
            "max_interval": 2.0,
        },
    },
    "testnet": {},
    "mainnet": {
        "CONFIRMATION": {
            "timeout": 300.0,
            "max_attempts": 40,
        },
    },
}


TOKENS = {
    "local": {},
    "testnet": {
        "BONZO": "0x0000000000000000000000000000000000001549",
        "ABONZO": "0xee72c37fec48c9fec6bbd0982eceb7d7a038841e",
    },
    "mainnet": {
        "BONZO": "0x00000000000000000000000000000000007e545e",
        "ABONZO": "0xc5aa104d5e7d9bae3a69ddd5a722b8f6b69729c9",
    },
}


INTEGRATION_ADDYS = {
    "local": {},
    "testnet": {
        "BONZO_LENDING_POOL": "0x7710a96b01e02ed00768c3b39bfa7b4f1c128c62",
        "BONZO_REWARDS_CONTROLLER": "0x40f1f4247972952ab1d276cf552070d2e9880da6",
        "SAUCERSWAP_ROUTER": "0x0000000000000000000000000000000000159398",
    },
    "mainnet": {
        "BONZO_LENDING_POOL": "0x236897c518996163e7b313ad21d1c9fcc7ba1afc",
        "BONZO_REWARDS_CONTROLLER": "0x0f3950d2fcbf62a2d79880e4fc251e4cb6625fbc",
        "SAUCERSWAP_ROUTER": "0x00000000000000000000000000000000003c437a",
    },
}


VAULT_INFO = {
    "BONZO_SUPPLY": {
        "name": "Beefy BONZO Supply",
        "symbol": "bvBONZO-SUPPLY",
        "approval_delay": 0,
        "is_hedera_token": True,
    },
}


# SaucerSwap concentrated liquidity vaults managed by the keeper scripts
CLM_VAULTS = {
    "local": [],
    "testnet": [],
    "mainnet": [
        {
            "name": "BONZO-XBONZO",
            "vault": "0xcfba07324bd207c3ed41416a9a36f8184f9a2134",
            "strategy": "0x3dab58797e057878d3cd8f78f28c6967104fcd0c",
            "position_width": 8,
            "max_tick_deviation": 8,
        },
        {
            "name": "SAUCE-XSAUCE",
            "vault": "0x8aee31dff6264074a1a3929432070e1605f6b783",
            "strategy": "0xe9ab1d3c3d086a8efa0f153f107b096beabdee6f",
            "position_width": 6,
            "max_tick_deviation": 6,
        },
        {
            "name": "USDC-HBAR",
            "vault": "0x724f19f52a3e0e9d2881587c997db93f9613b2c7",
            "strategy": "0x157eb9ba35d70560d44394206d4a03885c33c6d5",
            "position_width": 9,
            "max_tick_deviation": 9,
        },
        {
            "name": "USDC-SAUCE",
            "vault": "0x0171baa37fc9f56c98bd56feb32bc28342944c6e",
            "strategy": "0xdc74ac010a60357a89008d5ebdbaf144cf5bd8c6",
            "position_width": 9,
            "max_tick_deviation": 9,
        },
    ],
}


# SaucerSwap CLM vaults with LARI rewards deployed by the 0200 migration
CLM_DEPLOYMENTS = {
    "local": [],
    "testnet": [
        {
            "label": "HbarSauce",
            "pool": "0x37814edc1ae88cf27c0c346648721fb04e7e0ae7",
            "quoter": "0x00000000000000000000000000000000001535b2",
            "factory": "0x00000000000000000000000000000000001243ee",
            "token0": "0x0000000000000000000000000000000000003ad2",  # WHBAR
            "token1": "0x0000000000000000000000000000000000120f46",  # SAUCE
            "native": "0x0000000000000000000000000000000000003ad2",
            "reward_tokens": [
                "0x0000000000000000000000000000000000120f46",
                "0x0000000000000000000000000000000000003ad2",
            ],
            "position_width": 200,
            "max_tick_deviation": 200,
            "twap_interval": 300,
            "name": "Beefy CLM LARI SaucerSwap Testnet",
            "symbol": "bCLM-LARI-SS-T",
        },
    ],
    "mainnet": [],
}
