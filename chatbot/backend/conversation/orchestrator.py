from __future__ import annotations

import logging
from typing import Any, Optional

from chatbot.backend import constants
from chatbot.backend.conversation import policies
from chatbot.backend.conversation.trace import TraceRecorder, make_entry
from chatbot.backend.conversation.types import TurnResult, TurnUsage
from chatbot.backend.services import completion_gateway, session_store


logger = logging.getLogger(__name__)


def _is_present(value: Any) -> bool:
	return isinstance(value, str) and value != ""


def validation_failure_result(trace_id: str = "") -> TurnResult:
	return TurnResult(
		text=constants.VALIDATION_FAILED_TEXT,
		status="invalid",
		trace=[make_entry("input_validation_failed", reason=constants.VALIDATION_FAILED_REASON)],
		usage=TurnUsage(),
		trace_id=trace_id,
	)


class ConversationOrchestrator:
	"""Runs one chat turn: validate, update the session, call the model, reply.

	The user's session lock is held from the user append until the assistant
	append, so concurrent turns for the same user run one after another.
	"""

	def __init__(self, gateway: completion_gateway.CompletionGateway, store: session_store.SessionStore):
		self._gateway = gateway
		self._store = store

	@property
	def gateway(self) -> completion_gateway.CompletionGateway:
		return self._gateway

	@property
	def store(self) -> session_store.SessionStore:
		return self._store

	@staticmethod
	def accepts(user_id: Any, message: Any) -> bool:
		return _is_present(user_id) and _is_present(message)

	def handle_turn(self, user_id: Any, message: Any, trace_id: Optional[str] = None) -> TurnResult:
		recorder = TraceRecorder(trace_id)
		result = self.run(user_id, message, recorder)
		result.trace_id = recorder.trace_id
		return result

	def run(self, user_id: Any, message: Any, recorder: TraceRecorder) -> TurnResult:
		recorder.record("request_received", userId=user_id, message=message)

		if not self.accepts(user_id, message):
			recorder.record("input_validation_failed", reason=constants.VALIDATION_FAILED_REASON)
			return validation_failure_result(recorder.trace_id)

		with self._store.session_scope(user_id):
			session, created = self._store.get_or_create(user_id)
			if created:
				recorder.record("new_session_created", userId=user_id)
			self._store.append_user(session, message)
			recorder.record("user_message_added_to_history", message=message)

			try:
				model = self._gateway.model
				recorder.record("calling_openai_model", model=model)
				completion = self._gateway.complete(session.history)
				recorder.record(
					"openai_model_responded",
					model=completion.model or model,
					prompt_tokens=completion.prompt_tokens,
					completion_tokens=completion.completion_tokens,
					total_tokens=completion.total_tokens,
				)

				decision = policies.select_response(completion.text, message, session.turn_count)
				policy_step = policies.POLICY_TRACE_STEPS.get(decision.tag)
				if policy_step:
					recorder.record(policy_step)

				self._store.append_assistant(session, decision.text)
				recorder.record("assistant_message_added_to_history", message=decision.text)

				usage = TurnUsage(
					prompt_tokens=completion.prompt_tokens,
					completion_tokens=completion.completion_tokens,
					total_tokens=completion.total_tokens,
				)
				recorder.record("token_usage_recorded", **usage.as_dict())
			except Exception as exc:
				error = exc.message if isinstance(exc, completion_gateway.CompletionFailure) else str(exc)
				if isinstance(exc, completion_gateway.CompletionFailure):
					logger.warning("[Trace ID: %s] completion failed: %s", recorder.trace_id, error)
				else:
					logger.exception("[Trace ID: %s] unexpected error during turn", recorder.trace_id)
				recorder.record("openai_api_error", error=error)
				return TurnResult(
					text=constants.FAILURE_TEXT_TEMPLATE.format(error=error),
					status="failed",
					trace=[make_entry("openai_api_failure", error=error)],
					usage=TurnUsage(),
				)

		return TurnResult(
			text=decision.text,
			status="succeeded",
			trace=[
				make_entry(
					"openai_model_called",
					metadata={"model": model, "prompt_tokens": usage.prompt_tokens},
				),
				make_entry("assistant_response_generated"),
			],
			usage=usage,
		)
