import os

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
EIGHT_DECIMALS = 10 ** 8

# 1 tinybar = 10^10 weibar
WEIBARS_PER_TINYBAR = 10 ** 10

# hedera testnet chain id
TESTNET_CHAIN_ID = 296

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
MIGRATIONS_DIR = os.path.join(ROOT_DIR, "migrations", "hedera", "v1")

# first anvil / hardhat node account
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ACCOUNT = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

# mixed case with a broken checksum
BAD_CHECKSUM_ADDRESS = "0xf39fd6e51aad88F6F4ce6aB8827279cffFb92266"
