import click
from web3 import Web3

from scripts.utils import log
from scripts.utils.cli import abort_on_failure, network_options, open_client


def check_account(client):
    """Read-only summary of the signing account."""
    info = {
        "address": client.address,
        "balance": client.balance(),
        "nonce": client.nonce(),
        "chain_id": client.chain_id,
    }
    log.info(f"Address: {info['address']}")
    log.info(f"Balance: {Web3.from_wei(info['balance'], 'ether')} HBAR")
    log.info(f"Nonce: {info['nonce']}")
    log.info(f"Chain id: {info['chain_id']}")
    if info["balance"] == 0:
        log.warn("The account holds no HBAR. Fund it from the faucet (testnet) or check the private key in `.env`.")
    return info


@click.command()
@network_options
@abort_on_failure
def cli(network, rpc, account):
    """Prints address, balance, nonce and chain id of the signing account."""
    _, client = open_client(network.lower(), account, rpc)
    log.h1("Account")
    check_account(client)


if __name__ == "__main__":
    cli()
