"""EVM wallet address validation.

Addresses are stored and compared lowercase; checksum casing is accepted on
input but not required.
"""

from __future__ import annotations

import re

WALLET_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
EVENT_ID_RE = re.compile(r"^0x[a-fA-F0-9]{64}$")


def is_valid_wallet_address(address: str) -> bool:
    return bool(WALLET_ADDRESS_RE.match(address))


def normalize_wallet_address(address: str) -> str:
    """Strip and lowercase a wallet address.

    Raises:
        ValueError: if the address is not 0x followed by 40 hex characters.
    """
    address = address.strip()
    if not is_valid_wallet_address(address):
        msg = "walletAddress must be a valid 0x address"
        raise ValueError(msg)
    return address.lower()


def normalize_event_id(event_id: str) -> str:
    """Lowercase a 0x-prefixed 32-byte event identifier.

    Raises:
        ValueError: if the identifier is not 0x followed by 64 hex characters.
    """
    event_id = event_id.strip()
    if not EVENT_ID_RE.match(event_id):
        msg = "eventId must be a 0x-prefixed 32-byte hex string"
        raise ValueError(msg)
    return event_id.lower()
