"""EIP-712 signing of profile stats updates.

The domain binds every signature to one deployment: contract name, version,
chain id and verifying contract address. The typed struct MUST match the
profile contract's STATS_UPDATE_TYPEHASH field for field.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import structlog
from eth_account import Account
from web3 import Web3

from runera.config import Settings

logger = structlog.get_logger()

PROFILE_DOMAIN_NAME = "RuneraProfileDynamicNFT"
PROFILE_DOMAIN_VERSION = "1"

STATS_UPDATE_TYPES: dict[str, list[dict[str, str]]] = {
    "StatsUpdate": [
        {"name": "user", "type": "address"},
        {"name": "xp", "type": "uint96"},
        {"name": "level", "type": "uint16"},
        {"name": "runCount", "type": "uint32"},
        {"name": "achievementCount", "type": "uint32"},
        {"name": "totalDistanceMeters", "type": "uint64"},
        {"name": "longestStreakDays", "type": "uint32"},
        {"name": "lastUpdated", "type": "uint64"},
        {"name": "nonce", "type": "uint256"},
        {"name": "deadline", "type": "uint256"},
    ],
}

# Bit width of every unsigned field in the struct
UINT_WIDTHS: dict[str, int] = {
    field["name"]: int(field["type"].removeprefix("uint"))
    for field in STATS_UPDATE_TYPES["StatsUpdate"]
    if field["type"].startswith("uint")
}


@dataclass(frozen=True)
class StatsUpdate:
    """The attested profile stats, without nonce and deadline."""

    user: str
    xp: int
    level: int
    run_count: int
    achievement_count: int
    total_distance_meters: int
    longest_streak_days: int
    last_updated: int

    def to_message(self, nonce: int, deadline: int) -> dict[str, Any]:
        """Typed-data message for the StatsUpdate struct."""
        return {
            "user": Web3.to_checksum_address(self.user),
            "xp": self.xp,
            "level": self.level,
            "runCount": self.run_count,
            "achievementCount": self.achievement_count,
            "totalDistanceMeters": self.total_distance_meters,
            "longestStreakDays": self.longest_streak_days,
            "lastUpdated": self.last_updated,
            "nonce": nonce,
            "deadline": deadline,
        }

    def out_of_range(self, nonce: int, deadline: int) -> list[str]:
        """Names of the fields that do not fit their uint width in the struct."""
        message = self.to_message(nonce, deadline)
        return [name for name, bits in UINT_WIDTHS.items() if not 0 <= message[name] < 2**bits]


class AttestationSigner:
    """Holds the backend signer key and the domain it signs for."""

    def __init__(self, private_key: str, chain_id: int, verifying_contract: str) -> None:
        self._account = Account.from_key(private_key)
        self.chain_id = chain_id
        self.verifying_contract = Web3.to_checksum_address(verifying_contract)

    @classmethod
    def from_settings(cls, settings: Settings) -> AttestationSigner | None:
        """Build a signer, or None when signing is not (correctly) configured."""
        if not settings.attestation_enabled:
            return None
        try:
            return cls(settings.signer_private_key, settings.chain_id, settings.profile_nft_address)
        except Exception as exc:  # noqa: BLE001
            logger.error("attestation_signer_misconfigured", error=str(exc))
            return None

    @property
    def address(self) -> str:
        return self._account.address

    def domain(self) -> dict[str, Any]:
        return {
            "name": PROFILE_DOMAIN_NAME,
            "version": PROFILE_DOMAIN_VERSION,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract,
        }

    def sign_sync(self, stats: StatsUpdate, nonce: int, deadline: int) -> str:
        """0x-prefixed 65-byte signature over the typed StatsUpdate."""
        signed = self._account.sign_typed_data(
            domain_data=self.domain(),
            message_types=STATS_UPDATE_TYPES,
            message_data=stats.to_message(nonce, deadline),
        )
        return "0x" + bytes(signed.signature).hex()

    async def sign(self, stats: StatsUpdate, nonce: int, deadline: int) -> str:
        """Sign off the event loop; the secp256k1 math is CPU bound."""
        return await asyncio.to_thread(self.sign_sync, stats, nonce, deadline)
