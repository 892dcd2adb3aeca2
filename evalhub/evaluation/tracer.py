"""
Run Tracer

Per-example callback target threaded through every predictor invocation of
an evaluation run. Records start/end/error events and logs them with the
example id and session name attached.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class TraceEvent:
    """One event observed by a tracer."""

    kind: str  # "start", "end", "error"
    name: str
    payload: Any = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class RunTracer:
    """Callback handler scoped to one example of one session."""

    example_id: str
    session_name: str
    events: List[TraceEvent] = field(default_factory=list)

    @property
    def _log_extra(self) -> Dict[str, str]:
        return {"example_id": self.example_id, "session_name": self.session_name}

    def on_start(self, name: str, inputs: Any = None) -> None:
        self.events.append(TraceEvent(kind="start", name=name, payload=inputs))
        logger.debug("[%s] %s started", self.example_id, name, extra=self._log_extra)

    def on_end(self, name: str, outputs: Any = None) -> None:
        self.events.append(TraceEvent(kind="end", name=name, payload=outputs))
        logger.debug("[%s] %s finished", self.example_id, name, extra=self._log_extra)

    def on_error(self, name: str, error: Optional[BaseException] = None) -> None:
        self.events.append(TraceEvent(kind="error", name=name, payload=error))
        logger.debug("[%s] %s failed: %s", self.example_id, name, error, extra=self._log_extra)
