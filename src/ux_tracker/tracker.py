"""Tracker: wires consent, capture, batching and delivery together."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .capture.bindings import CaptureBindings
from .capture.source import UIEventSource
from .clock import Clock, LoopClock
from .config import StorageConfig, TrackerConfig, TransportConfig
from .consent.client import ConsentClient
from .consent.gate import ConsentGate, Decision
from .consent.prompt import ConsentPrompt, HeadlessPrompt
from .session import SessionIdentityManager
from .state import PipelineState
from .storage.base import KeyValueStore
from .storage.file import JsonFileStore
from .storage.memory import InMemoryStore
from .telemetry.batcher import EventBatcher
from .telemetry.events import Event, EventKind
from .telemetry.milestones import MilestoneTracker
from .transport.base import DeliveryTransport
from .transport.beacon import HttpxBeacon
from .transport.console import ConsoleTransport
from .transport.http import HttpTransport
from .transport.serializers import PayloadSerializer, create_serializer


logger = logging.getLogger(__name__)


def create_store(config: StorageConfig) -> KeyValueStore:
    """Build the configured key-value store."""
    if config.backend == "memory":
        return InMemoryStore()
    if config.backend == "file":
        return JsonFileStore(path=config.path)
    raise ValueError(f"Unknown storage backend {config.backend!r}")


def create_serializer_for(config: TransportConfig) -> PayloadSerializer:
    if config.payload_format == "generic":
        return create_serializer(
            "generic",
            event_type_field=config.event_type_field,
            include_envelope_context=config.include_envelope_context,
        )
    return create_serializer(config.payload_format)


def create_transport(config: TransportConfig, state: PipelineState, clock: Clock) -> DeliveryTransport:
    """Build the configured delivery transport."""
    serializer = create_serializer_for(config)
    if config.kind == "http":
        return HttpTransport(
            endpoint=config.endpoint,
            state=state,
            clock=clock,
            serializer=serializer,
            beacon=HttpxBeacon(timeout=config.beacon_timeout_seconds) if config.use_beacon else None,
            timeout=config.timeout_seconds,
        )
    if config.kind == "console":
        return ConsoleTransport(state=state, clock=clock, serializer=serializer, stream=config.stream)
    raise ValueError(f"Unknown transport {config.kind!r}")


@dataclass
class Tracker:
    """
    Client-side UI telemetry collector.

    Usage:
        source = SyntheticEventSource(page=PageInfo(url="https://shop.example/"))
        tracker = Tracker(config=TrackerConfig(identity="user@test.com"), source=source)
        decision = await tracker.start()
        ...
        await tracker.shutdown()

    Nothing is captured until consent is granted, either by the consent
    service, the cached decision, or the user answering the prompt.
    Components left as None are built from config.
    """
    config: TrackerConfig = field(default_factory=TrackerConfig)
    source: UIEventSource | None = None
    clock: Clock = field(default_factory=LoopClock)
    store: KeyValueStore | None = None
    prompt: ConsentPrompt | None = None
    consent_client: ConsentClient | None = None
    transport: DeliveryTransport | None = None
    state: PipelineState = field(default_factory=PipelineState)

    # Built in __post_init__
    sessions: SessionIdentityManager = field(init=False)
    gate: ConsentGate = field(init=False)
    batcher: EventBatcher = field(init=False)
    milestones: MilestoneTracker = field(init=False)
    bindings: CaptureBindings = field(init=False)

    def __post_init__(self):
        cfg = self.config
        self.state.init(cfg.identity)

        if self.store is None:
            self.store = create_store(cfg.storage)
        if self.prompt is None:
            self.prompt = HeadlessPrompt(element_id=cfg.capture.prompt_element_id)
        if self.consent_client is None and cfg.consent.service_url:
            self.consent_client = ConsentClient(
                base_url=cfg.consent.service_url,
                timeout=cfg.consent.timeout_seconds,
            )
        if self.transport is None:
            self.transport = create_transport(cfg.transport, self.state, self.clock)

        self.sessions = SessionIdentityManager(
            store=self.store,
            clock=self.clock,
            key=cfg.storage.session_key,
        )
        self.gate = ConsentGate(
            state=self.state,
            store=self.store,
            prompt=self.prompt,
            client=self.consent_client,
            cache_key=cfg.storage.consent_key,
            on_accept=self.start_tracking,
        )
        self.batcher = EventBatcher(
            state=self.state,
            clock=self.clock,
            deliver=self._deliver,
            batch_size=cfg.batch.batch_size,
            flush_interval_ms=cfg.batch.flush_interval_ms,
        )
        self.milestones = MilestoneTracker(
            thresholds=cfg.capture.milestones,
            fired=self.state.milestones,
        )
        self.bindings = CaptureBindings(
            config=cfg.capture,
            clock=self.clock,
            milestones=self.milestones,
            record=self.track,
            on_visibility=self.batcher.on_visibility_change,
        )

    async def start(self) -> Decision:
        """Run the consent decision and start capturing if allowed."""
        logger.info(f"Checking consent for: {self.state.identity or 'anonymous'}")
        decision = await self.gate.decide()
        if decision is Decision.PROCEED:
            self.start_tracking()
        elif decision is Decision.STOP:
            logger.info("Tracking disabled for this page")
        return decision

    def start_tracking(self) -> None:
        """Begin capture. Idempotent; refuses to run without consent."""
        if self.state.tracking_active:
            return
        if not self.state.capture_allowed:
            logger.warning("Refusing to start tracking without consent")
            return

        self.state.tracking_active = True
        self.state.session_id = self.sessions.get_or_create_session_id()

        page = self.source.page if self.source is not None else None
        if page is not None:
            self.transport.page = page

        if self.config.capture.track_page_view:
            self.track(
                EventKind.PAGE_VIEW,
                width=page.width if page else None,
                height=page.height if page else None,
            )

        if self.source is not None:
            self.bindings.attach(self.source)
        self.batcher.start_timer()
        logger.info(f"Tracking active (session={self.state.session_id})")

    def track(self, kind: str | EventKind, **attributes: Any) -> Event | None:
        """
        Record an event. Returns it, or None if it was not recorded
        (tracking inactive or invalid attributes).
        """
        if not self.state.tracking_active:
            return None

        context = self.source.page.url if self.source is not None else None
        try:
            event = Event.create(
                kind,
                occurred_at=self.state.next_timestamp(self.clock.now_ms()),
                context=context,
                **attributes,
            )
        except (TypeError, ValueError) as e:
            logger.warning(f"Dropping invalid event: {e}")
            return None

        self.batcher.enqueue(event)
        return event

    def flush(self) -> int:
        """Send whatever is queued now."""
        return self.batcher.flush()

    def _deliver(self, events: list[Event], unloading: bool) -> None:
        self.transport.send(events, unloading=unloading)

    async def shutdown(self) -> None:
        """Stop capture, flush as if the page were unloading, wait for sends."""
        self.bindings.detach()
        self.batcher.stop_timer()
        self.batcher.flush(unloading=True)
        await self.transport.aclose()
        logger.info(f"Tracker stopped. Stats: {self.stats}")

    def reset(self) -> None:
        """Forget the current page lifetime (queue, milestones, consent state)."""
        self.bindings.detach()
        self.batcher.stop_timer()
        if self.prompt.is_visible:
            self.prompt.dismiss()
        self.state.reset()

    async def __aenter__(self) -> Tracker:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.shutdown()

    @property
    def stats(self) -> dict:
        return {
            "consent": self.state.consent.value,
            "tracking_active": self.state.tracking_active,
            "batcher": self.batcher.stats,
            "capture": self.bindings.stats,
            "transport": self.transport.stats,
        }
