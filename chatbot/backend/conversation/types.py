from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional


Role = Literal["system", "user", "assistant"]
TurnStatus = Literal["succeeded", "failed", "invalid"]
PolicyTag = Literal["clarifying_question", "early_help", "pass_through"]


@dataclass(frozen=True)
class Message:
	role: Role
	content: str

	def as_dict(self) -> Dict[str, str]:
		return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class TraceEntry:
	step: str
	timestamp: str = ""
	metadata: Optional[Dict[str, Any]] = None
	reason: Optional[str] = None
	error: Optional[str] = None

	def as_dict(self) -> Dict[str, Any]:
		payload: Dict[str, Any] = {"step": self.step}
		if self.reason is not None:
			payload["reason"] = self.reason
		if self.metadata is not None:
			payload["metadata"] = dict(self.metadata)
		if self.error is not None:
			payload["error"] = self.error
		return payload


@dataclass(frozen=True)
class TurnUsage:
	prompt_tokens: int = 0
	completion_tokens: int = 0
	total_tokens: int = 0

	def as_dict(self) -> Dict[str, int]:
		return {
			"prompt_tokens": self.prompt_tokens,
			"completion_tokens": self.completion_tokens,
			"total_tokens": self.total_tokens,
		}


@dataclass
class TurnResult:
	text: str
	status: TurnStatus
	trace: List[TraceEntry] = field(default_factory=list)
	usage: TurnUsage = field(default_factory=TurnUsage)
	trace_id: str = ""

	def as_dict(self) -> Dict[str, Any]:
		return {
			"text": self.text,
			"trace": [entry.as_dict() for entry in self.trace],
			"usage": self.usage.as_dict(),
		}


@dataclass(frozen=True)
class PolicyDecision:
	text: str
	tag: PolicyTag
