"""Read-only access to the profile contract's per-user attestation counter."""

from __future__ import annotations

from typing import Any, Protocol

from web3 import AsyncWeb3

# Only the view the backend needs: nonces(address) -> uint256
PROFILE_NONCES_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "nonces",
        "stateMutability": "view",
        "inputs": [{"name": "user", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]


class NonceReader(Protocol):
    """Anything that can report the contract's current counter for an address."""

    async def get_nonce(self, address: str) -> int: ...


class Web3NonceReader:
    """``NonceReader`` backed by an HTTP JSON-RPC endpoint."""

    def __init__(self, rpc_url: str, contract_address: str) -> None:
        self._w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        self._contract = self._w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(contract_address),
            abi=PROFILE_NONCES_ABI,
        )

    async def get_nonce(self, address: str) -> int:
        value = await self._contract.functions.nonces(AsyncWeb3.to_checksum_address(address)).call()
        return int(value)
