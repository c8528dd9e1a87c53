from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Tuple

from chatbot.backend.conversation.types import TraceEntry


logger = logging.getLogger("chatbot.trace")


def now_iso() -> str:
	return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def new_trace_id() -> str:
	return uuid.uuid4().hex


def make_entry(
	step: str,
	*,
	metadata: Optional[dict] = None,
	reason: Optional[str] = None,
	error: Optional[str] = None,
) -> TraceEntry:
	return TraceEntry(
		step=step,
		timestamp=now_iso(),
		metadata=metadata,
		reason=reason,
		error=error,
	)


def serialize_trace(entries: Iterable[TraceEntry]) -> List[dict]:
	return [entry.as_dict() for entry in entries]


class TraceRecorder:
	"""Diagnostic step log for a single request.

	Every step is kept in memory and written to the ``chatbot.trace`` logger.
	A failure while writing the log line is dropped so it never reaches the
	caller.
	"""

	def __init__(self, trace_id: Optional[str] = None):
		self.trace_id = trace_id or new_trace_id()
		self._entries: List[TraceEntry] = []

	@property
	def entries(self) -> Tuple[TraceEntry, ...]:
		return tuple(self._entries)

	@property
	def steps(self) -> List[str]:
		return [entry.step for entry in self._entries]

	def record(self, step: str, **metadata: Any) -> TraceEntry:
		entry = make_entry(step, metadata=metadata or None)
		self._entries.append(entry)
		try:
			logger.info(
				"[Trace ID: %s] [Step: %s] %s",
				self.trace_id,
				step,
				json.dumps(metadata, ensure_ascii=False, default=str),
			)
		except Exception:
			pass
		return entry
