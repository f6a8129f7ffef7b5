from typing import Any, Dict, Tuple

from eth_utils import is_address, to_checksum_address

from nftmarket.constants import FEE_DENOMINATOR, ZERO_ADDRESS
from nftmarket.errors import InvalidInput


def calculate_fee(amount: int, rate: int) -> int:
    """Fraction of ``amount`` at ``rate`` basis points, rounded down."""
    return amount * rate // FEE_DENOMINATOR


def calculate_fee_rounded_up(amount: int, rate: int) -> int:
    """Fraction of ``amount`` at ``rate`` basis points, rounded up."""
    return -(-amount * rate // FEE_DENOMINATOR)


def is_zero_address(address: str) -> bool:
    return address is None or to_checksum_address(address) == ZERO_ADDRESS


def normalize_address(address: Any) -> str:
    """Return the checksummed form of ``address`` or raise InvalidInput."""
    address = getattr(address, 'address', address)
    if not is_address(address):
        raise InvalidInput(f"Marketplace: invalid address {address!r}")
    return to_checksum_address(address)


def parse_tx(tx: Dict[str, Any]) -> Tuple[str, int]:
    """Split brownie-style transaction parameters into (sender, value)."""
    if not tx or 'from' not in tx:
        raise InvalidInput("Marketplace: transaction sender required")
    sender = normalize_address(tx['from'])
    value = tx.get('value', 0)
    if not isinstance(value, int) or value < 0:
        raise InvalidInput("Marketplace: invalid transaction value")
    return sender, value
