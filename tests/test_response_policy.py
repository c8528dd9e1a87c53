from unittest import TestCase

from chatbot.backend.conversation.policies import POLICY_TRACE_STEPS, select_response


class ResponsePolicyTests(TestCase):
	def test_clarifying_question_passes_through_regardless_of_message(self) -> None:
		text = "Could you clarify your request?"
		for message in ("I need help", "help me find a product", "hello"):
			decision = select_response(text, message, 2)
			self.assertEqual(decision.text, text)
			self.assertEqual(decision.tag, "clarifying_question")

	def test_ambiguous_marker_is_case_insensitive(self) -> None:
		decision = select_response("That is AMBIGUOUS to me.", "help", 2)
		self.assertEqual(decision.tag, "clarifying_question")
		self.assertEqual(decision.text, "That is AMBIGUOUS to me.")

	def test_early_help_uses_generic_template(self) -> None:
		decision = select_response("Sure, what do you need?", "I need help", 2)
		self.assertEqual(decision.tag, "early_help")
		self.assertEqual(decision.text, "Welcome! How can I assist you with your query?")

	def test_early_help_uses_product_template(self) -> None:
		decision = select_response("Sure, what do you need?", "help me find a product", 2)
		self.assertEqual(decision.tag, "early_help")
		self.assertEqual(decision.text, "Welcome! How can I assist you with our products?")

	def test_help_match_is_case_insensitive(self) -> None:
		decision = select_response("Sure.", "HELP with PRODUCTS please", 4)
		self.assertEqual(decision.text, "Welcome! How can I assist you with our products?")

	def test_turn_count_threshold_is_inclusive_at_four(self) -> None:
		self.assertEqual(select_response("Sure.", "help", 4).tag, "early_help")
		later = select_response("Sure.", "help", 5)
		self.assertEqual(later.tag, "pass_through")
		self.assertEqual(later.text, "Sure.")

	def test_plain_reply_passes_through(self) -> None:
		decision = select_response("Hello there!", "hello", 2)
		self.assertEqual(decision.tag, "pass_through")
		self.assertEqual(decision.text, "Hello there!")

	def test_pass_through_has_no_trace_step(self) -> None:
		self.assertNotIn("pass_through", POLICY_TRACE_STEPS)
		self.assertEqual(POLICY_TRACE_STEPS["early_help"], "adaptive_behavior_early_help_response")
