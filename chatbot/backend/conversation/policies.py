from __future__ import annotations

from typing import Dict

from chatbot.backend import constants
from chatbot.backend.conversation.types import PolicyDecision, PolicyTag


_CLARIFYING_MARKERS = ("clarify", "ambiguous")

# Diagnostic trace step for each tag; pass-through is not traced.
POLICY_TRACE_STEPS: Dict[PolicyTag, str] = {
	"clarifying_question": "adaptive_behavior_clarifying_question",
	"early_help": "adaptive_behavior_early_help_response",
}


def is_clarifying_question(text: str) -> bool:
	content = text.lower()
	return any(marker in content for marker in _CLARIFYING_MARKERS)


def early_help_text(user_message: str) -> str:
	topic = (
		constants.EARLY_HELP_PRODUCT_TOPIC
		if "product" in user_message.lower()
		else constants.EARLY_HELP_GENERIC_TOPIC
	)
	return constants.EARLY_HELP_TEXT_TEMPLATE.format(topic=topic)


def select_response(assistant_text: str, user_message: str, turn_count: int) -> PolicyDecision:
	"""Pick the reply text for a completed turn.

	``turn_count`` is the history length once the user message is appended and
	before the assistant reply is, system message included.
	"""
	if is_clarifying_question(assistant_text):
		return PolicyDecision(text=assistant_text, tag="clarifying_question")
	if "help" in user_message.lower() and turn_count <= constants.EARLY_HELP_MAX_TURN_COUNT:
		return PolicyDecision(text=early_help_text(user_message), tag="early_help")
	return PolicyDecision(text=assistant_text, tag="pass_through")
