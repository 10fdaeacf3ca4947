"""Use case that writes the answer from the retrieved context."""
from __future__ import annotations

import logging

from domain.interfaces import LanguageModel

logger = logging.getLogger(__name__)

ANSWER_INSTRUCTIONS = """You are an expert assistant explaining a codebase.
Answer the developer's question accurately using only the provided context snippets, and be clear and concise.
If the snippets do not contain the answer, say that the information is not available in them.
Snippets use this format:
File: <file path>
```
<code>
```
---
"""


def build_prompt(query: str, context: str) -> str:
    return f"User Query: {query}\n\nContext:\n{context}\n\nAnswer:"


def build_feedback_prompt(query: str, context: str, prior_answer: str, prior_reasoning: str, prior_score: float) -> str:
    return (
        f"User Query: {query}\n\n"
        f"Context:\n{context}\n\n"
        f'Previous Answer (Score: {prior_score}): "{prior_answer}"\n'
        f"Reasoning for low score: {prior_reasoning}\n\n"
        "Please provide an improved answer based only on the provided context, "
        "addressing the reasons for the low score. Answer:"
    )


class AnswerGenerator:
    """Generate a first answer, or an improved one from judge feedback."""

    def __init__(self, llm: LanguageModel) -> None:
        self._llm = llm

    async def generate(
        self,
        query: str,
        context: str,
        prior_answer: str | None = None,
        prior_reasoning: str | None = None,
        prior_score: float | None = None,
    ) -> str:
        if prior_answer is None:
            prompt = build_prompt(query, context)
        else:
            logger.info("Regenerating answer with feedback (previous score %s)", prior_score)
            prompt = build_feedback_prompt(
                query,
                context,
                prior_answer,
                prior_reasoning or "",
                0.0 if prior_score is None else prior_score,
            )
        return await self._llm.generate_text(prompt, system=ANSWER_INSTRUCTIONS)


__all__ = ["ANSWER_INSTRUCTIONS", "AnswerGenerator", "build_prompt", "build_feedback_prompt"]
