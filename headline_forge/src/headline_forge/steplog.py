"""
Per-run step log for title generation.

Records every step with its offset from the start of the run, and measures
named phases with start_step/end_step. Entries are mirrored to structlog at
debug level; the summary is returned to callers as diagnostics.
"""

import time
import uuid
from collections import deque
from dataclasses import dataclass, field, asdict
from typing import Any, Callable, Optional

from .logging_conf import get_logger

logger = get_logger(__name__)

MAX_ENTRIES = 500


@dataclass
class LogEntry:
    """A single logged step."""
    elapsed_ms: int
    step: str
    level: str = "info"
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


class GenerationLog:
    """
    Bounded step log for one generation run.

    Args:
        max_entries: Oldest entries are dropped beyond this many
        clock: Time source in seconds (monotonic by default)
    """

    def __init__(
        self,
        max_entries: int = MAX_ENTRIES,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.session_id = f"tg_{uuid.uuid4().hex[:12]}"
        self._clock = clock
        self._start = clock()
        self.entries: deque[LogEntry] = deque(maxlen=max_entries)
        self.step_times: dict[str, int] = {}
        self._open_steps: dict[str, float] = {}

    def _elapsed_ms(self) -> int:
        return int((self._clock() - self._start) * 1000)

    def _add(self, level: str, step: str, data: Optional[dict]) -> LogEntry:
        entry = LogEntry(elapsed_ms=self._elapsed_ms(), step=step, level=level, data=dict(data or {}))
        self.entries.append(entry)
        logger.debug(
            "generation_step",
            session_id=self.session_id,
            step=step,
            level=level,
            elapsed_ms=entry.elapsed_ms,
        )
        return entry

    def step(self, step: str, **data: Any) -> LogEntry:
        return self._add("info", step, data)

    def warning(self, step: str, message: str) -> LogEntry:
        return self._add("warning", step, {"message": message})

    def error(self, step: str, error: BaseException | str) -> LogEntry:
        return self._add("error", step, {"error": str(error)})

    def debug(self, step: str, **data: Any) -> LogEntry:
        return self._add("debug", step, data)

    def start_step(self, name: str) -> None:
        self._open_steps[name] = self._clock()

    def end_step(self, name: str) -> int:
        """Close a timed step. Returns its duration in ms (0 if never started)."""
        started = self._open_steps.pop(name, None)
        if started is None:
            return 0
        duration = int((self._clock() - started) * 1000)
        self.step_times[name] = duration
        return duration

    def count(self, level: str) -> int:
        return sum(1 for e in self.entries if e.level == level)

    def summary(self) -> dict:
        return {
            "session_id": self.session_id,
            "total_time_ms": self._elapsed_ms(),
            "steps": len(self.entries),
            "errors": self.count("error"),
            "warnings": self.count("warning"),
            "step_times": dict(self.step_times),
            "logs": [e.to_dict() for e in self.entries],
        }
