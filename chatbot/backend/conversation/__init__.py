from chatbot.backend.conversation.orchestrator import ConversationOrchestrator
from chatbot.backend.conversation.trace import TraceRecorder, new_trace_id
from chatbot.backend.conversation.types import Message, TraceEntry, TurnResult, TurnUsage

__all__ = [
	"ConversationOrchestrator",
	"Message",
	"TraceEntry",
	"TraceRecorder",
	"TurnResult",
	"TurnUsage",
	"new_trace_id",
]
