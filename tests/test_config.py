"""Tests for configuration loading."""

import json

import pytest

from ux_tracker.config import BatchConfig, StorageConfig, TrackerConfig
from ux_tracker.storage.file import JsonFileStore
from ux_tracker.storage.memory import InMemoryStore
from ux_tracker.tracker import create_store, create_transport
from ux_tracker.transport.console import ConsoleTransport
from ux_tracker.transport.http import HttpTransport
from ux_tracker.transport.serializers import MouseMovementSerializer


class TestTrackerConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("UX_TRACKER_IDENTITY", raising=False)
        monkeypatch.delenv("UX_TRACKER_CONSENT_URL", raising=False)
        config = TrackerConfig()

        assert config.identity is None
        assert config.batch.batch_size == 5
        assert config.batch.flush_interval_ms == 2000
        assert config.capture.mousemove_throttle_ms == 100
        assert config.capture.milestones == (25, 50, 75, 90)
        assert config.consent.service_url is None
        assert config.transport.payload_format == "generic"

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("UX_TRACKER_IDENTITY", "env@test.com")
        monkeypatch.setenv("UX_TRACKER_ENDPOINT", "http://collector.env/api/sync")
        config = TrackerConfig()
        assert config.identity == "env@test.com"
        assert config.transport.endpoint == "http://collector.env/api/sync"

    def test_from_dict(self):
        config = TrackerConfig.from_dict({
            "identity": "user@test.com",
            "batch": {"batch_size": 10},
            "capture": {"milestones": [50, 100]},
            "transport": {"payload_format": "mouse_movements"},
            "storage": {"namespace": "shop"},
        })

        assert config.identity == "user@test.com"
        assert config.batch.batch_size == 10
        assert config.batch.flush_interval_ms == 2000
        assert config.capture.milestones == (50, 100)
        assert config.transport.payload_format == "mouse_movements"
        assert config.storage.consent_key == "shop_consent"
        assert config.storage.session_key == "shop_session_id"

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "tracker.yaml"
        path.write_text(
            "identity: user@test.com\n"
            "consent:\n"
            "  service_url: http://localhost:5000\n"
            "transport:\n"
            "  endpoint: http://localhost:5000/api/sync\n"
            "  event_type_field: event_type\n"
        )
        config = TrackerConfig.load(str(path))

        assert config.consent.service_url == "http://localhost:5000"
        assert config.transport.event_type_field == "event_type"

    def test_from_json(self, tmp_path):
        path = tmp_path / "tracker.json"
        path.write_text(json.dumps({"batch": {"flush_interval_ms": 500}}))
        assert TrackerConfig.load(str(path)).batch.flush_interval_ms == 500

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert TrackerConfig.from_yaml(str(path)).batch.batch_size == 5

    def test_unknown_key_rejected(self):
        with pytest.raises(TypeError):
            TrackerConfig.from_dict({"batch": {"batch_sise": 3}})

    @pytest.mark.parametrize("kwargs", [{"batch_size": 0}, {"flush_interval_ms": 0}])
    def test_invalid_batch(self, kwargs):
        with pytest.raises(ValueError):
            BatchConfig(**kwargs)


class TestFactories:
    def test_create_store(self, tmp_path):
        assert isinstance(create_store(StorageConfig(backend="memory")), InMemoryStore)
        store = create_store(StorageConfig(backend="file", path=str(tmp_path / "s.json")))
        assert isinstance(store, JsonFileStore)

        with pytest.raises(ValueError):
            create_store(StorageConfig(backend="redis"))

    def test_create_transport(self, state, clock):
        config = TrackerConfig().transport

        http = create_transport(config, state, clock)
        assert isinstance(http, HttpTransport)
        assert http.beacon is not None

        config.use_beacon = False
        config.payload_format = "mouse_movements"
        http = create_transport(config, state, clock)
        assert http.beacon is None
        assert isinstance(http.serializer, MouseMovementSerializer)

        config.kind = "console"
        assert isinstance(create_transport(config, state, clock), ConsoleTransport)

        config.kind = "carrier-pigeon"
        with pytest.raises(ValueError):
            create_transport(config, state, clock)
