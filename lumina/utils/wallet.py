from web3 import Web3


def normalize_wallet(address: str) -> str:
    """Return the EIP-55 checksum form of `address`, or raise ValueError."""
    candidate = (address or "").strip()
    if not Web3.is_address(candidate):
        raise ValueError(f"Invalid wallet address: {address!r}")
    return Web3.to_checksum_address(candidate)
