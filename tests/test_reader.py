"""Tests for mmr_reader/reader.py - one refresh tick and the engine lifecycle."""

import json
import threading

import pytest
import requests

from fakes import FakeResponse, FakeSession, ladder_response, token_response
from mmr_reader.errors import LifecycleError
from mmr_reader.fetcher import LadderApiClient
from mmr_reader.reader import MmrReader

NOW = 1_700_000_000_000
HOUR_MS = 3600 * 1000


def make_reader(config, session):
    return MmrReader(config, client=LadderApiClient(session=session), clock=lambda: NOW)


def write_cached_token(config, token, expiration_ms):
    config.data_directory.mkdir(parents=True, exist_ok=True)
    config.access_cache_path.write_text(
        json.dumps({"accessToken": token, "expirationTimeMs": expiration_ms})
    )


# ======================================================================
# refresh_mmr
# ======================================================================

def test_refresh_writes_rounded_mmr(make_config):
    config = make_config()
    session = FakeSession(post=[token_response("abc", 3600)], get=[ladder_response(3724.4)])
    reader = make_reader(config, session)

    assert reader.refresh_mmr() == 3724
    assert config.mmr_file_path.read_text() == "3724"
    assert session.get_calls[0]["params"]["access_token"] == "abc"

    cached = json.loads(config.access_cache_path.read_text())
    assert cached == {"accessToken": "abc", "expirationTimeMs": NOW + 3600 * 1000}


def test_refresh_uses_cached_token(make_config):
    config = make_config()
    write_cached_token(config, "cached", NOW + HOUR_MS)
    session = FakeSession(get=[ladder_response(4000.0)])
    reader = make_reader(config, session)

    assert reader.refresh_mmr() == 4000
    assert session.post_calls == []
    assert session.get_calls[0]["params"]["access_token"] == "cached"


def test_refresh_with_corrupt_cache_file(make_config):
    config = make_config()
    config.data_directory.mkdir(parents=True)
    config.access_cache_path.write_text("{{{")
    session = FakeSession(post=[token_response("fresh", 3600)], get=[ladder_response(3000.0)])
    reader = make_reader(config, session)

    assert reader.refresh_mmr() == 3000
    assert len(session.post_calls) == 1


def test_ladder_timeout_leaves_output_alone(make_config):
    config = make_config()
    config.mmr_file_path.write_text("3500")
    write_cached_token(config, "cached", NOW + HOUR_MS)
    session = FakeSession(get=[requests.ReadTimeout("timed out")])
    reader = make_reader(config, session)

    assert reader.refresh_mmr() is None
    assert config.mmr_file_path.read_text() == "3500"


def test_bad_ladder_response_leaves_output_alone(make_config):
    config = make_config()
    write_cached_token(config, "cached", NOW + HOUR_MS)
    session = FakeSession(get=[FakeResponse({"ranksAndPools": []})])
    reader = make_reader(config, session)

    assert reader.refresh_mmr() is None
    assert not config.mmr_file_path.exists()


def test_no_token_skips_ladder_request(make_config):
    config = make_config()
    session = FakeSession(post=[requests.ConnectionError("offline")])
    reader = make_reader(config, session)

    assert reader.refresh_mmr() is None
    assert session.get_calls == []
    assert not config.mmr_file_path.exists()


def test_output_write_failure_is_absorbed(make_config, tmp_path):
    config = make_config(mmr_file_path=tmp_path / "missing-dir" / "mmr.txt")
    write_cached_token(config, "cached", NOW + HOUR_MS)
    session = FakeSession(get=[ladder_response(3724.4)])
    reader = make_reader(config, session)

    assert reader.refresh_mmr() is None


def test_refresh_uses_configured_timeout(make_config):
    config = make_config(request_timeout_sec=3.5)
    write_cached_token(config, "cached", NOW + HOUR_MS)
    session = FakeSession(get=[ladder_response()])
    reader = MmrReader(config, clock=lambda: NOW)
    reader.client.session = session

    reader.refresh_mmr()
    assert session.get_calls[0]["timeout"] == 3.5


# ======================================================================
# start / request_stop
# ======================================================================

class RecordingSession(FakeSession):
    """Serves the same token and ladder response forever."""

    def __init__(self):
        super().__init__()
        self.ladder_reads = threading.Event()

    def post(self, url, data=None, timeout=None):
        self.post_calls.append({"url": url, "data": data, "timeout": timeout})
        return token_response("abc", 3600)

    def get(self, url, params=None, timeout=None):
        self.get_calls.append({"url": url, "params": params, "timeout": timeout})
        self.ladder_reads.set()
        return ladder_response(3724.4)


def test_start_and_stop(make_config):
    config = make_config(ms_per_read=10)
    session = RecordingSession()
    reader = make_reader(config, session)

    reader.start()
    try:
        assert reader.is_running
        assert session.ladder_reads.wait(2.0)
    finally:
        reader.request_stop()

    assert not reader.is_running
    assert config.mmr_file_path.read_text() == "3724"
    # The token was only requested once across all ticks
    assert len(session.post_calls) == 1

    # Nothing is written after request_stop returns
    config.mmr_file_path.unlink()
    reads = len(session.get_calls)
    threading.Event().wait(0.1)
    assert len(session.get_calls) == reads
    assert not config.mmr_file_path.exists()


def test_start_twice_is_an_error(make_config):
    reader = make_reader(make_config(ms_per_read=60_000), RecordingSession())
    reader.start()
    try:
        with pytest.raises(LifecycleError):
            reader.start()
    finally:
        reader.request_stop()
