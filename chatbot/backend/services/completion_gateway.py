from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Sequence

from chatbot.backend import config, constants
from chatbot.backend.config import ConfigurationError
from chatbot.backend.conversation.types import Message


logger = logging.getLogger(__name__)


class CompletionFailure(Exception):
	def __init__(self, message: str):
		super().__init__(message)
		self.message = message


@dataclass(frozen=True)
class CompletionResult:
	text: str
	prompt_tokens: int = 0
	completion_tokens: int = 0
	total_tokens: int = 0
	model: str = ""


class CompletionGateway(Protocol):
	model: str

	def complete(self, history: Sequence[Message]) -> CompletionResult:
		...


def _build_openai_client(*, api_key: str, timeout_s: float):
	try:
		from openai import OpenAI
	except ImportError as exc:
		raise ConfigurationError("OpenAI SDK not installed. Add 'openai' dependency.") from exc
	return OpenAI(api_key=api_key, timeout=timeout_s, max_retries=0)


def _token_count(usage: Any, name: str) -> int:
	value = getattr(usage, name, 0) if usage is not None else 0
	try:
		return max(int(value or 0), 0)
	except (TypeError, ValueError):
		return 0


class OpenAICompletionGateway:
	"""Chat completions against the OpenAI API.

	Every SDK error, timeout included, surfaces as :class:`CompletionFailure`.
	No retries happen here.
	"""

	def __init__(
		self,
		client: Any = None,
		*,
		api_key: str = "",
		model: str = constants.DEFAULT_OPENAI_MODEL,
		temperature: float = constants.DEFAULT_OPENAI_TEMPERATURE,
		max_tokens: int = constants.DEFAULT_OPENAI_MAX_TOKENS,
		timeout_s: float = constants.DEFAULT_OPENAI_TIMEOUT_S,
	):
		if client is None:
			if not api_key:
				raise ConfigurationError("OpenAI API key not configured. Set OPENAI_API_KEY.")
			client = _build_openai_client(api_key=api_key, timeout_s=timeout_s)
		self._client = client
		self.model = model
		self.temperature = temperature
		self.max_tokens = max_tokens

	def complete(self, history: Sequence[Message]) -> CompletionResult:
		try:
			completion = self._client.chat.completions.create(
				model=self.model,
				messages=[message.as_dict() for message in history],
				temperature=self.temperature,
				max_tokens=self.max_tokens,
			)
		except Exception as exc:
			raise CompletionFailure(str(exc) or exc.__class__.__name__) from exc

		choices = getattr(completion, "choices", None) or []
		if not choices:
			raise CompletionFailure("Completion service returned no choices.")
		content = getattr(choices[0].message, "content", None)
		if content is None:
			raise CompletionFailure("Completion service returned no message content.")

		usage = getattr(completion, "usage", None)
		prompt_tokens = _token_count(usage, "prompt_tokens")
		completion_tokens = _token_count(usage, "completion_tokens")
		total_tokens = _token_count(usage, "total_tokens") or prompt_tokens + completion_tokens
		return CompletionResult(
			text=content,
			prompt_tokens=prompt_tokens,
			completion_tokens=completion_tokens,
			total_tokens=total_tokens,
			model=getattr(completion, "model", None) or self.model,
		)


class LocalCompletionGateway:
	"""Offline gateway that answers without calling any service."""

	model = "local"

	def complete(self, history: Sequence[Message]) -> CompletionResult:
		last_user = next((m.content for m in reversed(history) if m.role == "user"), "")
		text = f"You said: {last_user}" if last_user else "How can I help you today?"
		prompt_tokens = sum(len(m.content.split()) for m in history)
		completion_tokens = len(text.split())
		return CompletionResult(
			text=text,
			prompt_tokens=prompt_tokens,
			completion_tokens=completion_tokens,
			total_tokens=prompt_tokens + completion_tokens,
			model=self.model,
		)


FailurePredicate = Callable[[Sequence[Message]], bool]


class FaultInjectingGateway:
	"""Wraps another gateway and fails the turns picked by ``should_fail``."""

	def __init__(
		self,
		inner: CompletionGateway,
		should_fail: FailurePredicate,
		message: str = "Simulated OpenAI API timeout or internal server error.",
	):
		self._inner = inner
		self._should_fail = should_fail
		self.message = message

	@property
	def model(self) -> str:
		return self._inner.model

	def complete(self, history: Sequence[Message]) -> CompletionResult:
		if self._should_fail(history):
			logger.warning("Injected completion failure after %d messages", len(history))
			raise CompletionFailure(self.message)
		return self._inner.complete(history)


def fail_at_history_length(length: int) -> FailurePredicate:
	def _predicate(history: Sequence[Message]) -> bool:
		return len(history) == length

	return _predicate


def build_gateway(mode: Optional[config.ProviderMode] = None) -> CompletionGateway:
	configured = mode or config.provider_mode()
	effective = config.resolved_provider_mode(configured)
	if effective == "local":
		logger.info("Using local completion gateway (provider mode %s)", configured)
		return LocalCompletionGateway()
	return OpenAICompletionGateway(
		api_key=config.openai_api_key(),
		model=config.openai_model(),
		temperature=config.openai_temperature(),
		max_tokens=config.openai_max_tokens(),
		timeout_s=config.openai_timeout(),
	)
