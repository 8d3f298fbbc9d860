"""Attestation sequence reconciliation against the contract counter."""

from __future__ import annotations

import pytest

from runera.chain.reader import Web3NonceReader
from runera.chain.reconciler import SOURCE_FALLBACK, SOURCE_LOCAL, SOURCE_ONCHAIN, NonceReconciler
from runera.config import Settings
from runera.runs.coordinator import RunSubmissionCoordinator
from tests.conftest import PROFILE_NFT_ADDRESS, RUNNER_ADDRESS, FakeNonceReader

pytestmark = pytest.mark.asyncio


class TestNonceReconciler:
    async def test_no_reader_uses_local(self):
        result = await NonceReconciler(None).reconcile(RUNNER_ADDRESS, 5)
        assert result.value == 5
        assert result.source == SOURCE_LOCAL
        assert result.onchain is None

    async def test_matching_values(self):
        result = await NonceReconciler(FakeNonceReader(5)).reconcile(RUNNER_ADDRESS, 5)
        assert result.value == 5
        assert result.source == SOURCE_ONCHAIN
        assert not result.rewinds

    async def test_chain_ahead_adopted(self):
        result = await NonceReconciler(FakeNonceReader(7)).reconcile(RUNNER_ADDRESS, 5)
        assert result.value == 7
        assert result.local == 5
        assert result.onchain == 7
        assert not result.rewinds

    async def test_chain_behind_adopted_and_flagged(self):
        result = await NonceReconciler(FakeNonceReader(3)).reconcile(RUNNER_ADDRESS, 5)
        assert result.value == 3
        assert result.rewinds

    async def test_read_failure_falls_back_to_local(self):
        reader = FakeNonceReader(error=ConnectionError("rpc down"))
        result = await NonceReconciler(reader).reconcile(RUNNER_ADDRESS, 5)
        assert result.value == 5
        assert result.source == SOURCE_FALLBACK
        assert not result.rewinds

    async def test_timeout_falls_back_to_local(self):
        reader = FakeNonceReader(9, delay=1.0)
        result = await NonceReconciler(reader, timeout_seconds=0.05).reconcile(RUNNER_ADDRESS, 5)
        assert result.value == 5
        assert result.source == SOURCE_FALLBACK

    async def test_single_attempt(self):
        reader = FakeNonceReader(error=ConnectionError("rpc down"))
        await NonceReconciler(reader).reconcile(RUNNER_ADDRESS, 0)
        assert reader.calls == [RUNNER_ADDRESS]


class TestWeb3NonceReader:
    async def test_unreachable_rpc_falls_back_to_local(self):
        reader = Web3NonceReader("http://127.0.0.1:9", PROFILE_NFT_ADDRESS)
        result = await NonceReconciler(reader, timeout_seconds=2.0).reconcile(RUNNER_ADDRESS, 4)
        assert result.value == 4
        assert result.source == SOURCE_FALLBACK

    async def test_coordinator_uses_web3_reader_when_rpc_configured(self):
        settings = Settings(chain_rpc_url="http://127.0.0.1:9", profile_nft_address=PROFILE_NFT_ADDRESS)
        coordinator = RunSubmissionCoordinator.from_settings(settings)
        assert isinstance(coordinator.attestation.reconciler.reader, Web3NonceReader)

    async def test_coordinator_without_rpc_has_no_reader(self):
        settings = Settings(chain_rpc_url="", profile_nft_address=PROFILE_NFT_ADDRESS)
        coordinator = RunSubmissionCoordinator.from_settings(settings)
        assert coordinator.attestation.reconciler.reader is None
