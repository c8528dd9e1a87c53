from __future__ import annotations

import os
from typing import Literal

from chatbot.backend import constants


ProviderMode = Literal["auto", "openai", "local"]

_PROVIDER_MODES = ("auto", "openai", "local")


class ConfigurationError(Exception):
	def __init__(self, message: str):
		super().__init__(message)
		self.message = message


def _int_env(name: str, default: int, minimum: int = 0) -> int:
	raw = os.getenv(name, "").strip()
	if not raw:
		return default
	try:
		value = int(raw)
	except ValueError as exc:
		raise ConfigurationError(f"{name} must be an integer.") from exc
	if value < minimum:
		raise ConfigurationError(f"{name} must be at least {minimum}.")
	return value


def _float_env(name: str, default: float, minimum: float = 0.0) -> float:
	raw = os.getenv(name, "").strip()
	if not raw:
		return default
	try:
		value = float(raw)
	except ValueError as exc:
		raise ConfigurationError(f"{name} must be numeric.") from exc
	if value < minimum:
		raise ConfigurationError(f"{name} must be at least {minimum}.")
	return value


def provider_mode() -> ProviderMode:
	mode = os.getenv("CHATBOT_PROVIDER_MODE", "auto").strip().lower() or "auto"
	if mode not in _PROVIDER_MODES:
		raise ConfigurationError("CHATBOT_PROVIDER_MODE must be one of: auto, openai, local.")
	return mode  # type: ignore[return-value]


def openai_api_key() -> str:
	return os.getenv("OPENAI_API_KEY", "").strip()


def resolved_provider_mode(configured_mode: ProviderMode | None = None) -> ProviderMode:
	mode = configured_mode or provider_mode()
	if mode != "auto":
		return mode
	return "openai" if openai_api_key() else "local"


def openai_model() -> str:
	return os.getenv("CHATBOT_OPENAI_MODEL", "").strip() or constants.DEFAULT_OPENAI_MODEL


def openai_temperature() -> float:
	return _float_env("CHATBOT_OPENAI_TEMPERATURE", constants.DEFAULT_OPENAI_TEMPERATURE)


def openai_max_tokens() -> int:
	return _int_env("CHATBOT_OPENAI_MAX_TOKENS", constants.DEFAULT_OPENAI_MAX_TOKENS, minimum=1)


def openai_timeout() -> float:
	value = _float_env("CHATBOT_OPENAI_TIMEOUT_S", constants.DEFAULT_OPENAI_TIMEOUT_S)
	if value <= 0:
		raise ConfigurationError("CHATBOT_OPENAI_TIMEOUT_S must be greater than zero.")
	return value


def session_ttl_seconds() -> int | None:
	"""Idle TTL for sessions; ``None`` keeps sessions for the process lifetime."""
	value = _int_env("CHATBOT_SESSION_TTL_S", 0)
	return value or None


def log_level() -> str:
	return os.getenv("CHATBOT_LOG_LEVEL", "INFO").strip().upper() or "INFO"
