"""Use case that picks the retrieval strategy (and filter) for a question."""
from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from domain.entities import UNFILTERED_STRATEGIES, Query, RetrievalDecision, RetrievalStrategy
from domain.interfaces import LanguageModel

logger = logging.getLogger(__name__)

ROUTER_INSTRUCTIONS = """You analyse developer questions about a codebase and choose the best way to search a Qdrant vector store of its source files.
Prefer strategies that use concrete information from the question.

1. metadata: filtered search. Only when the question names file types (".cs", ".ts"), file names or paths, functions, classes or other identifiers usable in a filter. Filter on the `source` field; use `tags` only when the question mentions tags or categories.
2. graph: relationship search. Only when the question asks about connections, dependencies, impact, callers or how parts of the code interact ("What uses function X?", "How does module Y talk to Z?").
3. example: code example search. Only when the question asks for a snippet, usage example or pattern. Filter on `tags` such as "Example" plus tags for the subject.
4. documentation: documentation search. Only for conceptual explanations, how-to guides, setup instructions or architecture overviews. Filter on `tags` such as "Documentation" plus tags for the subject.
5. hierarchical: two-step search (file summaries first, then chunks of the best files). Use when the question is broad and concerns whole files or modules ("Which files deal with billing and how?").
6. basic: plain semantic search. This is the DEFAULT for general questions ("What is X?", "Where is Y handled?") that do not clearly fit another strategy.

Filter rules:
- For metadata, example and documentation build a MongoDB-style filter ($eq, $ne, $regex, $in, $nin, $and, $or, $not).
- Use $regex on `source` for partial paths, escaping special characters (e.g. "User\\\\.cs$"); use $eq for exact paths.
- For basic, graph and hierarchical the filter MUST be null.

Examples:
- "Find the User class in models/User.cs" -> {"strategy": "metadata", "filter": {"source": {"$regex": "models/User\\\\.cs$"}}, "reasoning": "Names a file path.", "confidence": 0.95}
- "How do I set up logging?" -> {"strategy": "documentation", "filter": {"tags": {"$in": ["Documentation", "Logging"]}}, "reasoning": "How-to question.", "confidence": 0.9}
- "Give me an example of using the Button component" -> {"strategy": "example", "filter": {"tags": {"$in": ["Example", "Button"]}}, "reasoning": "Asks for an example.", "confidence": 0.9}
- "What does the processPayment function do?" -> {"strategy": "basic", "filter": null, "reasoning": "General question about one function.", "confidence": 0.7}
- "What calls the calculateTotal method?" -> {"strategy": "graph", "filter": null, "reasoning": "Asks for callers.", "confidence": 0.9}

Always fill the filter field, with an object or null, and explain your choice in reasoning.
"""


class RetrievalDecisionModel(BaseModel):
    strategy: RetrievalStrategy = "basic"
    filter: Optional[dict[str, Any]] = None
    reasoning: Optional[str] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_filter(self) -> "RetrievalDecisionModel":
        if self.strategy in UNFILTERED_STRATEGIES and self.filter is not None:
            raise ValueError(f"Filter must be null for the '{self.strategy}' strategy")
        return self

    def to_decision(self) -> RetrievalDecision:
        return RetrievalDecision(
            strategy=self.strategy,
            filter=self.filter,
            reasoning=self.reasoning,
            confidence=self.confidence,
        )


class RetrievalRouter:
    """Ask the language model for a ``RetrievalDecision``."""

    def __init__(self, llm: LanguageModel) -> None:
        self._llm = llm

    async def decide(self, query: Query) -> RetrievalDecision:
        logger.info("Routing query: %r", query.text)
        response = await self._llm.generate_structured(query.text, RetrievalDecisionModel, system=ROUTER_INSTRUCTIONS)
        decision = response.to_decision()
        logger.info("Retrieval decision: strategy=%s filter=%s", decision.strategy, decision.filter)
        return decision


__all__ = ["ROUTER_INSTRUCTIONS", "RetrievalDecisionModel", "RetrievalRouter"]
