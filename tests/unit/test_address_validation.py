"""Wallet address and event id normalisation."""

import pytest

from runera.auth.address_validation import is_valid_wallet_address, normalize_event_id, normalize_wallet_address


class TestWalletAddress:
    def test_checksum_address_lowercased(self):
        assert normalize_wallet_address("0x5A0b54D5dc17e0AadC383d2db43B0a0D3E029c4c") == (
            "0x5a0b54d5dc17e0aadc383d2db43b0a0d3e029c4c"
        )

    def test_whitespace_stripped(self):
        assert normalize_wallet_address("  0x" + "ab" * 20 + " ") == "0x" + "ab" * 20

    @pytest.mark.parametrize(
        "address",
        ["", "0x123", "5a0b54d5dc17e0aadc383d2db43b0a0d3e029c4c", "0x" + "g" * 40, "0x" + "a" * 41],
    )
    def test_invalid_addresses(self, address):
        assert not is_valid_wallet_address(address)
        with pytest.raises(ValueError, match="walletAddress"):
            normalize_wallet_address(address)


class TestEventId:
    def test_lowercased(self):
        assert normalize_event_id("0x" + "AB" * 32) == "0x" + "ab" * 32

    def test_wrong_length_rejected(self):
        with pytest.raises(ValueError, match="eventId"):
            normalize_event_id("0x" + "ab" * 20)
