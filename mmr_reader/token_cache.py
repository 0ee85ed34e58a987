"""Disk-backed cache for the Blizzard API access token."""

import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from mmr_reader.errors import CacheCorruptionError, ReaderError
from mmr_reader.fetcher import LadderApiClient
from mmr_reader.models import CachedToken

logger = logging.getLogger(__name__)


def load_cached_token(path: Path) -> Optional[CachedToken]:
    """
    Read the token cache file.

    Returns:
        The cached token, or None if there is no cache file

    Raises:
        CacheCorruptionError: if the file exists but can't be parsed
    """
    path = Path(path)
    if not path.exists():
        return None

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CacheCorruptionError(f"Could not read {path}: {e}") from e

    try:
        return CachedToken.model_validate_json(text)
    except ValidationError as e:
        raise CacheCorruptionError(f"Could not parse {path}: {e}") from e


def save_cached_token(path: Path, token: CachedToken):
    """Overwrite the token cache file with the given token."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(token.model_dump_json(by_alias=True), encoding="utf-8")


class TokenCache:
    """
    Keeps one access token valid across ticks.

    The token lives in memory and in a single-slot cache file so it survives
    restarts. Only the polling thread touches it, so there is no locking.
    """

    def __init__(self, client: LadderApiClient, client_id: str, client_secret: str, cache_path: Path):
        self.client = client
        self.client_id = client_id
        self.client_secret = client_secret
        self.cache_path = Path(cache_path)
        self.token: Optional[CachedToken] = None

    def get_valid_token(self, now_ms: int) -> str:
        """
        Return an access token that is valid at now_ms.

        Returns:
            The token, or "" if a new one was needed and couldn't be had
        """
        if self.token is None:
            self.token = self._load()

        if self.token is not None and self.token.is_valid_at(now_ms):
            return self.token.access_token

        try:
            access_token, expires_in = self.client.request_token(self.client_id, self.client_secret)
        except ReaderError as e:
            logger.warning(f"Could not get an access token: {e}")
            return ""

        self.token = CachedToken(
            access_token=access_token,
            expiration_time_ms=now_ms + expires_in * 1000
        )
        logger.info(f"Got a new access token, valid for {expires_in}s")

        # The token is usable this tick even if it can't be cached
        try:
            save_cached_token(self.cache_path, self.token)
        except OSError as e:
            logger.error(f"Failed to cache the access token in {self.cache_path}: {e}")

        return access_token

    def invalidate(self):
        """Forget the in-memory token; the next call re-reads the cache file."""
        self.token = None

    def _load(self) -> Optional[CachedToken]:
        try:
            return load_cached_token(self.cache_path)
        except CacheCorruptionError as e:
            logger.warning(f"Access token cache file corrupted, removing it and refreshing the token: {e}")
            try:
                self.cache_path.unlink()
            except OSError as delete_error:
                logger.error(f"Could not delete the access cache file: {delete_error}")
            return None
