"""Blizzard API access for the MMR reader."""

import logging
import math
from typing import Optional

import requests
from pydantic import ValidationError

from mmr_reader.config import region_code
from mmr_reader.errors import AuthError, NetworkError, ParseError, RegionError
from mmr_reader.models import LadderResponse, TokenResponse

logger = logging.getLogger(__name__)

TOKEN_URL = "https://us.battle.net/oauth/token"
API_BASE_URL = "https://us.api.blizzard.com"
LOCALE = "en_US"
USER_AGENT = "Sc2MmrReader/1.0"

# Seconds to wait on either endpoint before giving up on the request
DEFAULT_TIMEOUT = 10


def round_mmr(value: float) -> int:
    """
    Round a raw MMR to the integer that gets published.

    Uses round-half-to-even, so 3724.5 -> 3724 and 3725.5 -> 3726.
    """
    return int(round(value))


class LadderApiClient:
    """
    Stateless wrapper over the two calls needed to read an MMR.

    No retries happen here; a failed call raises and the caller decides
    what to do next.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})

    def request_token(self, client_id: str, client_secret: str) -> tuple[str, int]:
        """
        Exchange client credentials for an access token.

        Returns:
            Tuple of (access token, seconds until it expires)
        """
        data = {
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
        }

        try:
            response = self.session.post(TOKEN_URL, data=data, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkError(f"Token request failed: {e}") from e

        # Error statuses still carry a JSON body; judge the response on its fields
        try:
            token = TokenResponse.model_validate(response.json())
        except ValueError as e:
            # ValidationError is a ValueError too, as is a body that isn't JSON
            raise AuthError(f"Malformed token response (HTTP {response.status_code}): {e}") from e

        if not token.access_token:
            raise AuthError(f"Token response (HTTP {response.status_code}) has no access_token")
        if token.expires_in is None:
            raise AuthError(f"Token response (HTTP {response.status_code}) has no expires_in")

        return token.access_token, token.expires_in

    def ladder_url(self, region_id, realm_id: int, profile_id: int, ladder_id: int) -> str:
        code = region_code(region_id)
        if code is None:
            raise RegionError(f"Unknown region id: {region_id}")
        return f"{API_BASE_URL}/sc2/profile/{code}/{realm_id}/{profile_id}/ladder/{ladder_id}"

    def fetch_rating(self, region_id, realm_id: int, profile_id: int, ladder_id: int, token: str) -> int:
        """
        Fetch the current MMR of one profile ladder.

        Returns:
            MMR of the first ranked pool, rounded to an integer
        """
        url = self.ladder_url(region_id, realm_id, profile_id, ladder_id)
        params = {"locale": LOCALE, "access_token": token}

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise NetworkError(f"Ladder request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError(f"Ladder response is not JSON: {e}") from e

        return parse_rating(payload)


def parse_rating(payload) -> int:
    """Extract the rounded MMR from a decoded ladder response."""
    try:
        ladder = LadderResponse.model_validate(payload)
    except ValidationError as e:
        raise ParseError(f"Malformed ladder response: {e}") from e

    if not ladder.ranks_and_pools:
        raise ParseError("Ladder response has no ranksAndPools entries")

    mmr = ladder.ranks_and_pools[0].mmr
    if mmr is None:
        raise ParseError("First ranked pool has no mmr")
    if not math.isfinite(mmr):
        raise ParseError(f"First ranked pool has a non-finite mmr: {mmr}")

    return round_mmr(mmr)
