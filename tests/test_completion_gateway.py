import os
from unittest import TestCase
from unittest.mock import patch

from chatbot.backend.config import ConfigurationError
from chatbot.backend.conversation.types import Message
from chatbot.backend.services import completion_gateway
from chatbot.backend.services.completion_gateway import (
	CompletionFailure,
	FaultInjectingGateway,
	LocalCompletionGateway,
	OpenAICompletionGateway,
	build_gateway,
	fail_at_history_length,
)


def _obj(**fields):
	return type("FakeObject", (), fields)()


class _FakeCompletions:
	def __init__(self, *, content=None, usage=None, error=None, choices=True):
		self._content = content
		self._usage = usage
		self._error = error
		self._choices = choices
		self.calls = []

	def create(self, **kwargs):
		self.calls.append(kwargs)
		if self._error is not None:
			raise self._error
		choices = [_obj(message=_obj(content=self._content))] if self._choices else []
		return _obj(choices=choices, usage=self._usage, model=kwargs["model"])


class _FakeClient:
	def __init__(self, **kwargs):
		self.chat = _obj(completions=_FakeCompletions(**kwargs))


_HISTORY = (
	Message(role="system", content="Be nice."),
	Message(role="user", content="hello"),
)


class OpenAICompletionGatewayTests(TestCase):
	def test_success_returns_text_and_usage(self) -> None:
		client = _FakeClient(
			content="Hi there!",
			usage=_obj(prompt_tokens=12, completion_tokens=3, total_tokens=15),
		)
		gateway = OpenAICompletionGateway(client)
		result = gateway.complete(_HISTORY)

		self.assertEqual(result.text, "Hi there!")
		self.assertEqual((result.prompt_tokens, result.completion_tokens, result.total_tokens), (12, 3, 15))
		call = client.chat.completions.calls[0]
		self.assertEqual(call["model"], "gpt-4o")
		self.assertEqual(call["temperature"], 0.7)
		self.assertEqual(call["max_tokens"], 150)
		self.assertEqual(
			call["messages"],
			[{"role": "system", "content": "Be nice."}, {"role": "user", "content": "hello"}],
		)

	def test_sdk_error_becomes_completion_failure(self) -> None:
		gateway = OpenAICompletionGateway(_FakeClient(error=TimeoutError("Request timed out.")))
		with self.assertRaises(CompletionFailure) as ctx:
			gateway.complete(_HISTORY)
		self.assertEqual(ctx.exception.message, "Request timed out.")

	def test_empty_choices_is_failure(self) -> None:
		gateway = OpenAICompletionGateway(_FakeClient(choices=False))
		with self.assertRaises(CompletionFailure):
			gateway.complete(_HISTORY)

	def test_empty_content_is_returned_not_failed(self) -> None:
		gateway = OpenAICompletionGateway(
			_FakeClient(content="", usage=_obj(prompt_tokens=9, completion_tokens=0, total_tokens=9))
		)
		result = gateway.complete(_HISTORY)
		self.assertEqual(result.text, "")
		self.assertEqual((result.prompt_tokens, result.total_tokens), (9, 9))

	def test_missing_content_is_failure(self) -> None:
		gateway = OpenAICompletionGateway(_FakeClient(content=None))
		with self.assertRaises(CompletionFailure):
			gateway.complete(_HISTORY)

	def test_missing_usage_reports_zero(self) -> None:
		gateway = OpenAICompletionGateway(_FakeClient(content="ok", usage=None))
		result = gateway.complete(_HISTORY)
		self.assertEqual((result.prompt_tokens, result.completion_tokens, result.total_tokens), (0, 0, 0))

	def test_missing_api_key_is_configuration_error(self) -> None:
		with self.assertRaises(ConfigurationError):
			OpenAICompletionGateway(api_key="")


class LocalAndFaultGatewayTests(TestCase):
	def test_local_gateway_echoes_last_user_message(self) -> None:
		result = LocalCompletionGateway().complete(_HISTORY)
		self.assertEqual(result.text, "You said: hello")
		self.assertEqual(result.total_tokens, result.prompt_tokens + result.completion_tokens)

	def test_fault_injection_only_when_predicate_matches(self) -> None:
		gateway = FaultInjectingGateway(LocalCompletionGateway(), fail_at_history_length(5))
		self.assertEqual(gateway.model, "local")
		self.assertEqual(gateway.complete(_HISTORY).text, "You said: hello")

		five = _HISTORY + (
			Message(role="assistant", content="hi"),
			Message(role="user", content="again"),
			Message(role="assistant", content="ok"),
		)
		with self.assertRaises(CompletionFailure) as ctx:
			gateway.complete(five)
		self.assertIn("Simulated", ctx.exception.message)


class BuildGatewayTests(TestCase):
	def test_auto_without_key_uses_local(self) -> None:
		with patch.dict(os.environ, {"CHATBOT_PROVIDER_MODE": "auto", "OPENAI_API_KEY": ""}, clear=False):
			self.assertIsInstance(build_gateway(), LocalCompletionGateway)

	def test_openai_mode_without_key_fails(self) -> None:
		with patch.dict(os.environ, {"CHATBOT_PROVIDER_MODE": "openai", "OPENAI_API_KEY": ""}, clear=False):
			with self.assertRaises(ConfigurationError):
				build_gateway()

	def test_openai_mode_uses_configured_model(self) -> None:
		env = {
			"CHATBOT_PROVIDER_MODE": "openai",
			"OPENAI_API_KEY": "test-key",
			"CHATBOT_OPENAI_MODEL": "gpt-4o-mini",
			"CHATBOT_OPENAI_MAX_TOKENS": "64",
		}
		with patch.dict(os.environ, env, clear=False), patch.object(
			completion_gateway, "_build_openai_client", return_value=_FakeClient(content="ok")
		) as builder:
			gateway = build_gateway()
		self.assertIsInstance(gateway, OpenAICompletionGateway)
		self.assertEqual(gateway.model, "gpt-4o-mini")
		self.assertEqual(gateway.max_tokens, 64)
		builder.assert_called_once_with(api_key="test-key", timeout_s=30.0)
