"""Configuration for the UX tracker."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any


@dataclass
class BatchConfig:
    """Event queue batching."""
    # Flush as soon as this many events are queued
    batch_size: int = 5

    # Periodic flush interval
    flush_interval_ms: int = 2000

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.flush_interval_ms <= 0:
            raise ValueError("flush_interval_ms must be positive")


@dataclass
class CaptureConfig:
    """Which UI signals are captured and how often."""
    track_page_view: bool = True
    track_clicks: bool = True
    track_mousemove: bool = True
    track_scroll: bool = True
    track_forms: bool = True

    # Kind recorded for clicks ("click" or "interaction_click")
    click_kind: str = "click"

    # Minimum interval between handled pointer / scroll events
    mousemove_throttle_ms: int = 100
    scroll_throttle_ms: int = 100

    # Scroll depth milestones (percent)
    milestones: tuple[int, ...] = (25, 50, 75, 90)

    # Element id of the consent prompt; clicks inside it are not captured
    prompt_element_id: str = "analytics-consent-banner"

    def __post_init__(self):
        self.milestones = tuple(self.milestones)


@dataclass
class ConsentConfig:
    """Remote consent check."""
    # Base URL of the consent service (None = local decision only)
    service_url: str | None = field(
        default_factory=lambda: os.environ.get("UX_TRACKER_CONSENT_URL")
    )
    timeout_seconds: float = 5.0


@dataclass
class TransportConfig:
    """Delivery of batches to the collector."""
    kind: str = "http"  # http | console

    endpoint: str = field(
        default_factory=lambda: os.environ.get("UX_TRACKER_ENDPOINT", "http://localhost:3000/api/sync")
    )

    # Payload shape: generic | mouse_movements
    payload_format: str = "generic"

    # Name of the per-event type key in the generic payload ("type" | "event_type")
    event_type_field: str = "type"

    # Attach url / timestamp / user_agent to the generic envelope
    include_envelope_context: bool = False

    # Use the unload-safe beacon when the page is going away
    use_beacon: bool = True
    beacon_timeout_seconds: float = 2.0

    timeout_seconds: float = 10.0

    # Console transport options
    stream: str = "stdout"  # stdout | stderr


@dataclass
class StorageConfig:
    """Local persisted state."""
    backend: str = "memory"  # memory | file
    path: str = field(
        default_factory=lambda: os.environ.get("UX_TRACKER_STORE", ".ux_tracker/store.json")
    )

    # Key prefix
    namespace: str = "analytics"

    @property
    def consent_key(self) -> str:
        return f"{self.namespace}_consent"

    @property
    def session_key(self) -> str:
        return f"{self.namespace}_session_id"


@dataclass
class TrackerConfig:
    """Main configuration container."""
    # Externally supplied user/account reference (email)
    identity: str | None = field(
        default_factory=lambda: os.environ.get("UX_TRACKER_IDENTITY")
    )

    log_level: str = field(
        default_factory=lambda: os.environ.get("UX_TRACKER_LOG_LEVEL", "INFO")
    )

    batch: BatchConfig = field(default_factory=BatchConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    consent: ConsentConfig = field(default_factory=ConsentConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TrackerConfig:
        """Create config from dictionary."""
        top: dict[str, Any] = {}
        if "identity" in data:
            top["identity"] = data["identity"]
        if "log_level" in data:
            top["log_level"] = data["log_level"]
        return cls(
            batch=BatchConfig(**data.get("batch", {})),
            capture=CaptureConfig(**data.get("capture", {})),
            consent=ConsentConfig(**data.get("consent", {})),
            transport=TransportConfig(**data.get("transport", {})),
            storage=StorageConfig(**data.get("storage", {})),
            **top,
        )

    @classmethod
    def from_yaml(cls, path: str) -> TrackerConfig:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, path: str) -> TrackerConfig:
        """Load config from JSON file."""
        import json
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: str) -> TrackerConfig:
        """Load config, picking the parser from the file extension."""
        if path.endswith((".yaml", ".yml")):
            return cls.from_yaml(path)
        return cls.from_json(path)
