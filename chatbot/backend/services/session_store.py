from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, contextmanager
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import AsyncIterator, Dict, Iterator, List, Optional, Tuple

from chatbot.backend import config, constants
from chatbot.backend.conversation.types import Message, Role


def _now() -> datetime:
	return datetime.now(timezone.utc)


def _now_iso() -> str:
	return _now().isoformat().replace("+00:00", "Z")


class Session:
	"""Conversation history for one user, always led by the system message."""

	def __init__(self, user_id: str, system_prompt: str = constants.SYSTEM_PROMPT):
		self.user_id = user_id
		self.created_at = _now_iso()
		self.updated_at = self.created_at
		self._history: List[Message] = [Message(role="system", content=system_prompt)]

	@property
	def history(self) -> Tuple[Message, ...]:
		return tuple(self._history)

	@property
	def turn_count(self) -> int:
		return len(self._history)

	def _append(self, role: Role, content: str) -> Message:
		message = Message(role=role, content=content)
		self._history.append(message)
		self.updated_at = _now_iso()
		return message

	def __repr__(self) -> str:
		return f"Session(user_id={self.user_id!r}, turns={len(self._history)})"


class SessionStore:
	"""Process-wide map of user id to :class:`Session`.

	Each user id has its own lock; :meth:`session_scope` holds it for a whole
	turn so appends for one user never interleave. :meth:`turn_scope` queues
	turns on the event loop before a worker thread is taken. The registry
	lock is only held for map lookups.
	"""

	def __init__(self, *, ttl_seconds: Optional[int] = None, system_prompt: str = constants.SYSTEM_PROMPT):
		self._ttl_seconds = ttl_seconds
		self._system_prompt = system_prompt
		self._sessions: Dict[str, Session] = {}
		self._locks: Dict[str, Lock] = {}
		self._holders: Dict[str, int] = {}
		self._turn_locks: Dict[str, asyncio.Lock] = {}
		self._turn_waiters: Dict[str, int] = {}
		self._registry_lock = Lock()

	def __len__(self) -> int:
		with self._registry_lock:
			return len(self._sessions)

	def __contains__(self, user_id: object) -> bool:
		with self._registry_lock:
			return user_id in self._sessions

	@contextmanager
	def session_scope(self, user_id: str) -> Iterator[None]:
		with self._registry_lock:
			lock = self._locks.setdefault(user_id, Lock())
			self._holders[user_id] = self._holders.get(user_id, 0) + 1
		try:
			with lock:
				yield
		finally:
			with self._registry_lock:
				remaining = self._holders.get(user_id, 1) - 1
				if remaining > 0:
					self._holders[user_id] = remaining
				else:
					self._holders.pop(user_id, None)

	@asynccontextmanager
	async def turn_scope(self, user_id: str) -> AsyncIterator[None]:
		"""Event-loop side of :meth:`session_scope`.

		Queued turns for a user wait here instead of on a worker thread. The
		lock is discarded once nobody holds or waits on it.
		"""
		with self._registry_lock:
			lock = self._turn_locks.get(user_id)
			if lock is None:
				lock = self._turn_locks[user_id] = asyncio.Lock()
			self._turn_waiters[user_id] = self._turn_waiters.get(user_id, 0) + 1
		try:
			async with lock:
				yield
		finally:
			with self._registry_lock:
				remaining = self._turn_waiters.get(user_id, 1) - 1
				if remaining > 0:
					self._turn_waiters[user_id] = remaining
				else:
					self._turn_waiters.pop(user_id, None)
					self._turn_locks.pop(user_id, None)

	def get_or_create(self, user_id: str) -> Tuple[Session, bool]:
		with self._registry_lock:
			self._evict_expired_locked()
			session = self._sessions.get(user_id)
			if session is not None:
				return session, False
			session = Session(user_id, system_prompt=self._system_prompt)
			self._sessions[user_id] = session
			return session, True

	def get(self, user_id: str) -> Optional[Session]:
		with self._registry_lock:
			return self._sessions.get(user_id)

	def snapshot(self, user_id: str) -> Optional[Tuple[Message, ...]]:
		session = self.get(user_id)
		return session.history if session is not None else None

	def append_user(self, session: Session, content: str) -> Message:
		return session._append("user", content)

	def append_assistant(self, session: Session, content: str) -> Message:
		return session._append("assistant", content)

	def _evict_expired_locked(self) -> None:
		if not self._ttl_seconds:
			return
		cutoff = _now() - timedelta(seconds=self._ttl_seconds)
		expired: List[str] = []
		for user_id, session in self._sessions.items():
			if self._holders.get(user_id) or self._turn_waiters.get(user_id):
				continue
			try:
				updated = datetime.fromisoformat(session.updated_at.replace("Z", "+00:00"))
			except ValueError:
				expired.append(user_id)
				continue
			if updated < cutoff:
				expired.append(user_id)
		for user_id in expired:
			self._sessions.pop(user_id, None)
			self._locks.pop(user_id, None)


_DEFAULT_STORE: Optional[SessionStore] = None
_DEFAULT_STORE_LOCK = Lock()


def default_store() -> SessionStore:
	global _DEFAULT_STORE
	with _DEFAULT_STORE_LOCK:
		if _DEFAULT_STORE is None:
			_DEFAULT_STORE = SessionStore(ttl_seconds=config.session_ttl_seconds())
		return _DEFAULT_STORE
