"""
Tests for ModelDiscovery: cache TTL, atomic refresh, error mapping
and payload validation.
"""

import threading

import pytest
import requests

from fakes import SAMPLE_CATALOG, FakeResponse, catalog_payload, model_entry
from iarouter.models.base import DiscoveryError, DiscoveryTimeoutError
from iarouter.models.catalog import ModelDescriptor


def test_fetch_parses_catalog_in_order(sample_discovery):
    models = sample_discovery.fetch_available_models()
    assert list(models) == [e["id"] for e in SAMPLE_CATALOG["data"]]
    opus = models["anthropic/claude-opus-4.5"]
    assert isinstance(opus, ModelDescriptor)
    assert opus.provider == "anthropic"
    assert opus.pricing.prompt == pytest.approx(0.000015)
    assert opus.architecture.input_modalities == ("text", "image")
    assert opus.context_length == 200000


def test_fetch_sends_bearer_token_and_timeout(sample_discovery):
    sample_discovery.fetch_available_models()
    call = sample_discovery.session.calls[0]
    assert call["url"] == "https://catalog.test/api/v1/models"
    assert call["headers"]["Authorization"] == "Bearer sk-test"
    assert call["timeout"] == 5


def test_cache_hit_skips_network(sample_discovery, clock):
    first = sample_discovery.fetch_available_models()
    clock.advance(3599)
    second = sample_discovery.fetch_available_models()
    assert second is first
    assert len(sample_discovery.session.calls) == 1


def test_expired_cache_refetches_once(make_discovery, clock):
    discovery = make_discovery(
        FakeResponse(200, SAMPLE_CATALOG),
        FakeResponse(200, catalog_payload(model_entry("openai/gpt-4o"))),
    )
    discovery.fetch_available_models()
    clock.advance(3600)
    models = discovery.fetch_available_models()
    discovery.fetch_available_models()
    assert list(models) == ["openai/gpt-4o"]
    assert len(discovery.session.calls) == 2
    assert discovery.get_cache_size() == 1


def test_failed_refresh_keeps_previous_cache(make_discovery, clock):
    discovery = make_discovery(
        FakeResponse(200, SAMPLE_CATALOG),
        FakeResponse(503, {"error": "unavailable"}),
    )
    before = discovery.fetch_available_models()
    clock.advance(4000)
    with pytest.raises(DiscoveryError, match="503"):
        discovery.fetch_available_models()
    assert discovery.get_cache_size() == len(before)
    assert discovery._cache.models is before


def test_failed_refresh_does_not_serve_stale_data(make_discovery, clock):
    discovery = make_discovery(
        FakeResponse(200, SAMPLE_CATALOG),
        requests.ConnectionError("connection refused"),
        FakeResponse(200, SAMPLE_CATALOG),
    )
    discovery.fetch_available_models()
    clock.advance(3700)
    with pytest.raises(DiscoveryError, match="connection refused"):
        discovery.fetch_available_models()
    # Next call retries the network rather than serving the expired snapshot.
    assert len(discovery.fetch_available_models()) == len(SAMPLE_CATALOG["data"])
    assert len(discovery.session.calls) == 3


def test_timeout_is_a_distinct_error(make_discovery):
    discovery = make_discovery(requests.Timeout("read timed out"))
    with pytest.raises(DiscoveryTimeoutError) as excinfo:
        discovery.fetch_available_models()
    assert excinfo.value.code == "DISCOVERY_TIMEOUT"
    assert isinstance(excinfo.value.__cause__, requests.Timeout)


@pytest.mark.parametrize(
    "payload",
    [
        {"models": []},
        {"data": "nope"},
        catalog_payload({"id": "broken/model", "name": "Broken"}),
        catalog_payload(
            dict(model_entry("bad/pricing"), pricing={"prompt": "free", "completion": "0"})
        ),
        ValueError("Expecting value"),
    ],
)
def test_malformed_payload_raises(make_discovery, payload):
    discovery = make_discovery(FakeResponse(200, payload))
    with pytest.raises(DiscoveryError):
        discovery.fetch_available_models()
    assert discovery.get_cache_size() == 0


def test_clear_cache_forces_refetch(make_discovery):
    discovery = make_discovery(
        FakeResponse(200, SAMPLE_CATALOG), FakeResponse(200, SAMPLE_CATALOG)
    )
    discovery.fetch_available_models()
    discovery.clear_cache()
    assert discovery.get_cache_size() == 0
    assert discovery.get_cache_age() == 0.0
    discovery.fetch_available_models()
    assert len(discovery.session.calls) == 2


def test_cache_age_tracks_clock(sample_discovery, clock):
    sample_discovery.fetch_available_models()
    clock.advance(42)
    assert sample_discovery.get_cache_age() == 42


def test_empty_catalog_is_not_cached(make_discovery):
    discovery = make_discovery(
        FakeResponse(200, catalog_payload()), FakeResponse(200, SAMPLE_CATALOG)
    )
    assert len(discovery.fetch_available_models()) == 0
    assert len(discovery.fetch_available_models()) == len(SAMPLE_CATALOG["data"])


def test_cached_mapping_is_read_only(sample_discovery):
    models = sample_discovery.fetch_available_models()
    with pytest.raises(TypeError):
        models["new/model"] = None


def test_get_model_info_and_list_by_provider(sample_discovery):
    assert sample_discovery.get_model_info("x-ai/grok-4").name == "x-ai/grok-4"
    assert sample_discovery.get_model_info("missing/model") is None
    grouped = sample_discovery.list_by_provider()
    assert [m.id for m in grouped["anthropic"]] == [
        "anthropic/claude-opus-4.5",
        "anthropic/claude-sonnet-4.5",
    ]
    assert set(grouped) == {"anthropic", "x-ai", "perplexity", "meta-llama"}
    assert len(sample_discovery.session.calls) == 1


def test_concurrent_callers_share_one_fetch(make_discovery):
    gate = threading.Event()
    discovery = make_discovery(FakeResponse(200, SAMPLE_CATALOG))
    original_get = discovery.session.get

    def slow_get(url, headers, timeout):
        gate.wait(timeout=2)
        return original_get(url, headers, timeout)

    discovery.session.get = slow_get
    results = []
    threads = [
        threading.Thread(target=lambda: results.append(discovery.fetch_available_models()))
        for _ in range(8)
    ]
    for t in threads:
        t.start()
    gate.set()
    for t in threads:
        t.join()

    assert len(results) == 8
    assert len(discovery.session.calls) == 1
