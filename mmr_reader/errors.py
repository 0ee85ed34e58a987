"""Exceptions raised by the MMR reader."""


class ReaderError(Exception):
    """Base class for every error the reader raises on purpose."""


class NetworkError(ReaderError):
    """Transport failure or timeout talking to either upstream endpoint."""


class AuthError(ReaderError):
    """Token exchange response was missing or malformed."""


class ParseError(ReaderError):
    """Ladder response did not contain a usable rating."""


class CacheCorruptionError(ReaderError):
    """The access token cache file could not be parsed."""


class RegionError(ReaderError):
    """Region id has no numeric region code."""


class ConfigError(ReaderError):
    """Config file could not be read or failed validation."""


class LifecycleError(ReaderError):
    """The engine was started or stopped out of order."""
