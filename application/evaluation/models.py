from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field


class AnswerJudgement(BaseModel):
    accuracy: float = Field(ge=0.0, le=1.0, description="Factual correctness against the context.")
    relevance: float = Field(ge=0.0, le=1.0, description="How directly the answer addresses the query.")
    completeness: float = Field(ge=0.0, le=1.0, description="Coverage of the key aspects found in the context.")
    coherence: float = Field(ge=0.0, le=1.0, description="Structure and readability.")
    overall: float = Field(ge=0.0, le=1.0, description="Overall assessment.")
    reasoning: str = Field(description="Brief explanation of the scores.")


@dataclass(slots=True)
class RetrySettings:
    retry_threshold: float = 0.6
    max_context_length: int = 8000
