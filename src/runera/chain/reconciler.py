"""Reconcile the local attestation sequence with the contract's counter.

The contract tracks its own per-user counter and only accepts a signature
carrying exactly that value. Before every signature the backend reads it once:

- on-chain value differs from local -> adopt the on-chain value and log it
  (a prior attestation was consumed out of band, or a local increment never
  reached the chain);
- read fails or times out          -> fall back to the local value;
- no reader configured              -> local value.

There is no retry: a single attempt bounded by ``timeout_seconds``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from runera.chain.reader import NonceReader

logger = structlog.get_logger()

SOURCE_LOCAL = "local"
SOURCE_ONCHAIN = "onchain"
SOURCE_FALLBACK = "local_fallback"


@dataclass(frozen=True)
class ReconciledSequence:
    value: int
    local: int
    onchain: int | None
    source: str

    @property
    def rewinds(self) -> bool:
        """True when the chain is behind the local counter."""
        return self.onchain is not None and self.onchain < self.local


class NonceReconciler:
    def __init__(self, reader: NonceReader | None, timeout_seconds: float = 3.0) -> None:
        self.reader = reader
        self.timeout_seconds = timeout_seconds

    async def read_onchain(self, address: str) -> int | None:
        """Single bounded read. Returns None on any failure."""
        if self.reader is None:
            return None
        try:
            return await asyncio.wait_for(self.reader.get_nonce(address), timeout=self.timeout_seconds)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "onchain_read_failed",
                wallet_address=address,
                error=repr(exc),
                timeout_seconds=self.timeout_seconds,
            )
            return None

    async def reconcile(self, address: str, local: int) -> ReconciledSequence:
        if self.reader is None:
            return ReconciledSequence(value=local, local=local, onchain=None, source=SOURCE_LOCAL)

        onchain = await self.read_onchain(address)
        if onchain is None:
            return ReconciledSequence(value=local, local=local, onchain=None, source=SOURCE_FALLBACK)

        if onchain != local:
            logger.warning(
                "attestation_sequence_mismatch",
                wallet_address=address,
                local=local,
                onchain=onchain,
            )
        return ReconciledSequence(value=onchain, local=local, onchain=onchain, source=SOURCE_ONCHAIN)
