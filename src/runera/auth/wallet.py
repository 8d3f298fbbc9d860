"""Wallet message signature recovery (EIP-191 personal_sign)."""

from __future__ import annotations

from eth_account import Account
from eth_account.messages import encode_defunct


def build_login_message(challenge: str) -> str:
    """The exact text the wallet signs to log in."""
    return f"RUNERA login\nNonce: {challenge}"


def recover_signer(message: str, signature: str) -> str | None:
    """Lowercase address that signed ``message``, or None if the signature is malformed."""
    try:
        recovered = Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception:  # noqa: BLE001
        return None
    return recovered.lower()
