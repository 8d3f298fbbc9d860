"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from pydantic import Field, field_validator

from runera.auth.address_validation import normalize_wallet_address
from runera.schemas import CamelModel
from runera.users.schemas import UserResponse


class ChallengeRequest(CamelModel):
    """Request a wallet signing challenge."""

    wallet_address: str

    @field_validator("wallet_address")
    @classmethod
    def normalize_wallet(cls, v: str) -> str:
        return normalize_wallet_address(v)


class ChallengeResponse(CamelModel):
    """Challenge with the exact message to sign."""

    challenge: str
    message: str
    expires_in: int


class ConnectRequest(CamelModel):
    """Signed challenge from the wallet."""

    wallet_address: str
    challenge: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)

    @field_validator("wallet_address")
    @classmethod
    def normalize_wallet(cls, v: str) -> str:
        return normalize_wallet_address(v)


class ConnectResponse(CamelModel):
    token: str
    user: UserResponse
