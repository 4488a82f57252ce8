"""
Formatters utility.

Canonical wire rendering of on-chain values and masking helpers for logs.
"""

from eth_utils import is_address, to_bytes, to_hex, to_normalized_address


HASH_SIZE_BYTES = 32


def format_hash(value: bytes | str) -> str:
    """
    Render a bytes32 value as a 0x-prefixed lowercase hex string.

    Args:
        value: Raw 32 bytes or a hex string

    Returns:
        String like "0xaaaa...aaaa" (66 characters)

    Raises:
        ValueError: If the value is not exactly 32 bytes

    Examples:
        >>> format_hash(b"\\xaa" * 32)[:6]
        '0xaaaa'
    """
    raw = bytes(value) if isinstance(value, (bytes, bytearray)) else to_bytes(hexstr=value)
    if len(raw) != HASH_SIZE_BYTES:
        raise ValueError(
            f"Expected {HASH_SIZE_BYTES}-byte hash, got {len(raw)} bytes"
        )
    return to_hex(raw)


def format_address(value: str | bytes) -> str:
    """
    Render an address as a 0x-prefixed lowercase hex string.

    Args:
        value: Checksummed, lowercase or raw 20-byte address

    Returns:
        Normalized address (42 characters)

    Raises:
        ValueError: If the value is not a valid address
    """
    if isinstance(value, (bytes, bytearray)):
        value = to_hex(bytes(value))
    if not is_address(value):
        raise ValueError(f"Invalid address: {value!r}")
    return to_normalized_address(value)


def format_amount(value: int) -> str:
    """Render a token amount as a decimal string."""
    return str(int(value))


def mask_address(address: str | None) -> str:
    """
    Mask wallet address for logging: 0x1234...5678

    Args:
        address: Wallet address to mask

    Returns:
        Masked address showing first 6 and last 4 characters

    Examples:
        >>> mask_address("0x1234567890abcdef1234567890abcdef12345678")
        '0x1234...5678'
        >>> mask_address(None)
        '***'
    """
    if not address or len(address) < 10:
        return "***"
    return f"{address[:6]}...{address[-4:]}"


def mask_hash(value: str | None) -> str:
    """
    Shorten a hash for logging.

    Examples:
        >>> mask_hash("0x1234567890abcdef1234567890abcdef1234567890abcdef1234567890abcdef")
        '0x12345678...abcdef'
    """
    if not value or len(value) < 16:
        return "***"
    return f"{value[:10]}...{value[-6:]}"
