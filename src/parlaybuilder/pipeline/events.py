"""Phase boundary events emitted by the coordinator."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhaseEvent:
    phase: str
    status: str  # "started" | "completed" | "failed"
    detail: Dict[str, Any] = field(default_factory=dict)
    elapsed_ms: int | None = None


PhaseObserver = Callable[[PhaseEvent], None]


def log_phase_event(event: PhaseEvent) -> None:
    """Default observer: one log line per event."""

    level = logging.WARNING if event.status == "failed" else logging.INFO
    timing = f" in {event.elapsed_ms}ms" if event.elapsed_ms is not None else ""
    logger.log(level, "phase=%s status=%s%s %s", event.phase, event.status, timing, event.detail)
