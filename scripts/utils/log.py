from colorama import Fore, Style


def h1(msg):
    print(
        f"\n\n{Fore.CYAN}-------------------------------------------------------------------------")
    print(f"{Fore.CYAN}{msg}{Style.RESET_ALL}\n")


def h2(msg):
    print(f"\n{Fore.LIGHTBLUE_EX}▸ {msg}{Style.RESET_ALL}\n")


def h3(msg):
    print(f"\t{Fore.GREEN}{msg}{Style.RESET_ALL}")


def warn(msg):
    print(f"\t{Fore.YELLOW}⚠️  {msg}{Style.RESET_ALL}")


def error(msg):
    print(f"{Fore.RED}{msg}{Style.RESET_ALL}")


def info(msg):
    print(msg)


def tx(label, receipt):
    # one line per mined transaction
    tx_hash = receipt["transactionHash"]
    if hasattr(tx_hash, "hex"):
        tx_hash = tx_hash.hex()
    h3(f"{label} confirmed in block {receipt['blockNumber']} ({tx_hash}, gas {receipt.get('gasUsed', 0)})")
