"""Shared fixtures for the MMR reader tests."""

import pytest

from mmr_reader.config import ReaderConfig


@pytest.fixture
def make_config(tmp_path):
    """Build a ReaderConfig writing into tmp_path."""
    def _make(**overrides):
        settings = {
            "version": 1,
            "ms_per_read": 5000,
            "data_directory": tmp_path / "data",
            "mmr_file_path": tmp_path / "mmr.txt",
            "region_id": "US",
            "realm_id": 1,
            "profile_id": 1986271,
            "ladder_id": 274006,
            "client_id": "client-id",
            "client_secret": "client-secret",
        }
        settings.update(overrides)
        return ReaderConfig(**settings)
    return _make
