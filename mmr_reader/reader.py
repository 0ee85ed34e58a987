"""MMR reader engine: polls the ladder API and writes the MMR to a file."""

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from mmr_reader.config import ReaderConfig
from mmr_reader.errors import ReaderError
from mmr_reader.fetcher import LadderApiClient
from mmr_reader.scheduler import PollScheduler
from mmr_reader.token_cache import TokenCache

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current unix time in milliseconds."""
    return int(time.time() * 1000)


def write_mmr(path: Path, mmr: int):
    """Overwrite the output file with the MMR as a plain decimal string."""
    Path(path).write_text(str(mmr), encoding="utf-8")


class MmrReader:
    """
    Reads the configured ladder's MMR every ms_per_read milliseconds into
    the configured output file.

    Failed ticks are logged and leave the output file alone; the next tick
    simply tries again.
    """

    def __init__(
        self,
        config: ReaderConfig,
        client: Optional[LadderApiClient] = None,
        scheduler: Optional[PollScheduler] = None,
        clock: Callable[[], int] = now_ms
    ):
        self.config = config
        self.client = client or LadderApiClient(timeout=config.request_timeout_sec)
        self.scheduler = scheduler or PollScheduler()
        self.clock = clock
        self.token_cache = TokenCache(
            self.client,
            client_id=config.client_id,
            client_secret=config.client_secret,
            cache_path=config.access_cache_path
        )

    @property
    def is_running(self) -> bool:
        return self.scheduler.is_running

    def start(self):
        """Start polling in the background. Raises LifecycleError if already started."""
        logger.info(
            f"Reading MMR for profile {self.config.profile_id} "
            f"(region {self.config.region_id.value}, ladder {self.config.ladder_id}) "
            f"into {self.config.mmr_file_path}"
        )
        self.scheduler.start(self.config.ms_per_read, self.refresh_mmr)

    def request_stop(self):
        """Stop polling. Returns once the background thread has exited."""
        self.scheduler.stop()

    def refresh_mmr(self) -> Optional[int]:
        """
        Run one tick: make sure the token is fresh, read the MMR, write it out.

        Returns:
            The MMR written, or None if this tick produced nothing
        """
        token = self.token_cache.get_valid_token(self.clock())
        if not token:
            logger.warning("No access token this tick, skipping MMR read")
            return None

        try:
            mmr = self.client.fetch_rating(
                self.config.region_id,
                self.config.realm_id,
                self.config.profile_id,
                self.config.ladder_id,
                token
            )
        except ReaderError as e:
            logger.warning(f"Could not read MMR: {e}")
            return None

        try:
            write_mmr(self.config.mmr_file_path, mmr)
        except OSError as e:
            logger.error(f"Could not write MMR to {self.config.mmr_file_path}: {e}")
            return None

        logger.info(f"MMR: {mmr}")
        return mmr
