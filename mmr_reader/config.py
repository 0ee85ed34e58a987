"""Reader configuration and the Config.json file that stores it."""

import logging
import re
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mmr_reader.errors import ConfigError

logger = logging.getLogger(__name__)

# Bump whenever the config file format changes
CONFIG_VERSION = 1

ACCESS_CACHE_FILENAME = "Access.tmp"


class Region(str, Enum):
    """Regions the ladder API serves."""
    US = "US"
    EU = "EU"
    KO = "KO"  # also covers TW
    CN = "CN"


# Numeric region codes used in the profile endpoint path
REGION_CODES = {
    "US": 1,
    "EU": 2,
    "KO": 3,
    "CN": 5,
}

# Inverse of REGION_CODES, for the region digit in a starcraft2.com URL
REGIONS_BY_CODE = {code: region for region, code in REGION_CODES.items()}

LADDER_URL_PATTERN = re.compile(
    r"/profile/([0-9])/([0-9])/([0-9]+)/ladders\?ladderId=([0-9]+)"
)


class ReaderConfig(BaseModel):
    """Everything the reader needs to poll one ladder.

    Field aliases are the keys used in Config.json.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: int = 0

    # Polling and output
    ms_per_read: int = Field(5000, gt=0, alias="msPerRead")
    data_directory: Path = Field(Path(""), alias="dataDirectory")
    mmr_file_path: Path = Field(Path("mmr.txt"), alias="mmrFilePath")
    request_timeout_sec: float = Field(10.0, gt=0, alias="requestTimeoutSec")

    # Ladder to read, e.g. https://starcraft2.com/en-us/profile/1/1/1986271/ladders?ladderId=274006
    region_id: Region = Field(alias="regionId")
    realm_id: int = Field(1, alias="realmId")
    profile_id: int = Field(alias="profileId")
    ladder_id: int = Field(alias="ladderId")

    # Blizzard API developer credentials
    client_id: str = Field(min_length=1, alias="clientId")
    client_secret: str = Field(min_length=1, alias="clientSecret")

    @property
    def access_cache_path(self) -> Path:
        return self.data_directory / ACCESS_CACHE_FILENAME


def region_code(region_id) -> Optional[int]:
    """Numeric code for a region id, or None if it is not a known region."""
    if isinstance(region_id, Region):
        region_id = region_id.value
    return REGION_CODES.get(str(region_id))


def parse_ladder_url(url: str) -> Optional[dict]:
    """
    Pull the ladder coordinates out of a starcraft2.com ladder URL.

    Expected form:
        https://starcraft2.com/<locale>/profile/<region>/<realm>/<profile>/ladders?ladderId=<ladder>

    Returns:
        Dict with region_id, realm_id, profile_id and ladder_id, or None if
        the URL is not a ladder URL.
    """
    match = LADDER_URL_PATTERN.search(url or "")
    if not match:
        return None

    region = REGIONS_BY_CODE.get(int(match.group(1)))
    if region is None:
        logger.warning(f"Unknown region in ladder URL: {match.group(1)}")
        return None

    return {
        "region_id": Region(region),
        "realm_id": int(match.group(2)),
        "profile_id": int(match.group(3)),
        "ladder_id": int(match.group(4)),
    }


def load_config(path: Path) -> ReaderConfig:
    """Read and validate a config file. Raises ConfigError on any problem."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Unable to open the config file at {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise ConfigError(f"Config file {path} is not UTF-8 text: {e}") from e

    try:
        return ReaderConfig.model_validate_json(text)
    except ValidationError as e:
        raise ConfigError(f"Config file {path} is not valid: {e}") from e


def save_config_file(config: ReaderConfig, path: Path) -> bool:
    """Write a config file. Returns False (and logs) if it could not be written."""
    try:
        Path(path).write_text(
            config.model_dump_json(by_alias=True, indent=4) + "\n",
            encoding="utf-8"
        )
    except OSError as e:
        logger.error(f"Could not write the config file to {path}: {e}")
        return False
    return True


def config_version_status(config: ReaderConfig) -> str:
    """Classify a config as "current", "outdated" or "too_new"."""
    if config.version < CONFIG_VERSION:
        return "outdated"
    if config.version > CONFIG_VERSION:
        return "too_new"
    return "current"


def upgrade_config(config: ReaderConfig) -> ReaderConfig:
    """Stamp an outdated config with the current version.

    Settings added since the config was written already hold their defaults.
    """
    return config.model_copy(update={"version": CONFIG_VERSION})


def resolve_paths(config: ReaderConfig, base_dir: Path) -> ReaderConfig:
    """Make the output and data paths absolute, relative to base_dir."""
    base_dir = Path(base_dir).resolve()
    updates = {}
    if not config.mmr_file_path.is_absolute():
        updates["mmr_file_path"] = base_dir / config.mmr_file_path
    if not config.data_directory.is_absolute():
        updates["data_directory"] = base_dir / config.data_directory
    if not updates:
        return config
    return config.model_copy(update=updates)
