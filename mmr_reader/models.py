"""Pydantic models for upstream API responses and the token cache file."""

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr
from typing import Optional, Union


class TokenResponse(BaseModel):
    """Response from the OAuth client-credentials exchange."""
    access_token: Optional[StrictStr] = None
    token_type: Optional[str] = None
    expires_in: Optional[StrictInt] = None  # seconds


class RankAndPool(BaseModel):
    """One ranked pool entry of a profile's ladder."""
    # Numbers only: no numeric strings, no booleans
    mmr: Optional[Union[StrictInt, StrictFloat]] = None


class LadderResponse(BaseModel):
    """Profile ladder lookup response. Only the ranked pools are used."""
    model_config = ConfigDict(populate_by_name=True)

    ranks_and_pools: Optional[list[RankAndPool]] = Field(None, alias="ranksAndPools")


class CachedToken(BaseModel):
    """Access token persisted in the Access.tmp cache file."""
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(min_length=1, alias="accessToken")
    expiration_time_ms: int = Field(alias="expirationTimeMs")  # unix epoch ms

    def is_valid_at(self, now_ms: int) -> bool:
        return now_ms < self.expiration_time_ms
