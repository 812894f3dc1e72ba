"""Static allow-list of stable tokens that may be swapped into the native asset."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from stableswap.models.chain import ADDRESS_REGEX


class AllowedToken(BaseModel):
    model_config = ConfigDict(frozen=True)

    chain: str
    address: str
    symbol: str
    name: str
    decimals: int
    color: str | None = None

    @field_validator("address")
    @classmethod
    def validate_address(cls, value: str) -> str:
        if not ADDRESS_REGEX.match(value):
            raise ValueError(f"Invalid token address: {value}")
        return value

    @field_validator("decimals")
    @classmethod
    def validate_decimals(cls, value: int) -> int:
        if value < 0 or value > 36:
            raise ValueError(f"decimals out of range: {value}")
        return value


APPROVED_TOKENS: dict[str, tuple[AllowedToken, ...]] = {
    "ethereum": (
        AllowedToken(
            chain="ethereum",
            address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
            symbol="USDC",
            name="USDC",
            decimals=6,
            color="#2775CA",
        ),
        AllowedToken(
            chain="ethereum",
            address="0x6B175474E89094C44Da98b954EedeAC495271d0F",
            symbol="DAI",
            name="Dai",
            decimals=18,
            color="#FFAA00",
        ),
    ),
    "sepolia": (
        AllowedToken(
            chain="sepolia",
            address="0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238",
            symbol="USDC",
            name="USDC",
            decimals=6,
            color="#2775CA",
        ),
    ),
}


def allowed_tokens(chain: str) -> tuple[AllowedToken, ...]:
    return APPROVED_TOKENS.get(chain.strip().lower(), ())


def get_allowed_token(chain: str, token: str) -> AllowedToken | None:
    """Resolve an allow-listed token by address or symbol (case-insensitive)."""
    needle = (token or "").strip().lower()
    if not needle:
        return None
    for candidate in allowed_tokens(chain):
        if candidate.address.lower() == needle or candidate.symbol.lower() == needle:
            return candidate
    return None
