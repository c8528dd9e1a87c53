from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiError(BaseModel):
	model_config = ConfigDict(extra="forbid")

	code: str
	message: str


class ApiErrorEnvelope(BaseModel):
	model_config = ConfigDict(extra="allow")

	ok: bool = False
	generated_at: str
	trace_id: Optional[str] = None
	error: ApiError


class ChatRequest(BaseModel):
	model_config = ConfigDict(extra="ignore")

	# Presence is checked by the orchestrator so a missing field yields the chat fallback body.
	userId: Optional[str] = Field(default=None, description="Opaque conversation owner id.")
	message: Optional[str] = Field(default=None, description="User message for this turn.")


class TraceStep(BaseModel):
	model_config = ConfigDict(extra="forbid")

	step: str
	reason: Optional[str] = None
	metadata: Optional[Dict[str, Any]] = None
	error: Optional[str] = None


class Usage(BaseModel):
	model_config = ConfigDict(extra="forbid")

	prompt_tokens: int = Field(default=0, ge=0)
	completion_tokens: int = Field(default=0, ge=0)
	total_tokens: int = Field(default=0, ge=0)


class ChatResponse(BaseModel):
	model_config = ConfigDict(extra="forbid")

	text: str
	trace: List[TraceStep] = Field(default_factory=list)
	usage: Usage = Field(default_factory=Usage)


class HealthData(BaseModel):
	model_config = ConfigDict(extra="forbid")

	ok: bool
	provider_mode: Literal["openai", "local"]
	model: str
	sessions: int = Field(default=0, ge=0)
