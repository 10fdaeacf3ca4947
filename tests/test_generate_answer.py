import unittest

from application.use_cases.generate_answer import (
    ANSWER_INSTRUCTIONS,
    AnswerGenerator,
    build_feedback_prompt,
    build_prompt,
)
from domain.interfaces import LanguageModel


class RecordingLanguageModel(LanguageModel):
    def __init__(self, reply="The function charges the card."):
        self.reply = reply
        self.calls: list[tuple[str, str | None]] = []

    async def generate_text(self, prompt, *, system=None):
        self.calls.append((prompt, system))
        return self.reply

    async def generate_structured(self, prompt, schema, *, system=None):
        raise AssertionError("generate_structured is not expected here")


class TestPrompts(unittest.TestCase):
    def test_first_answer_prompt(self):
        self.assertEqual(
            build_prompt("What is X?", "File: x.ts\n```\nx\n```\n---\n"),
            "User Query: What is X?\n\nContext:\nFile: x.ts\n```\nx\n```\n---\n\n\nAnswer:",
        )

    def test_feedback_prompt_mentions_prior_attempt(self):
        prompt = build_feedback_prompt("What is X?", "ctx", "X is Y", "Missed the return value", 0.4)
        self.assertIn('Previous Answer (Score: 0.4): "X is Y"', prompt)
        self.assertIn("Reasoning for low score: Missed the return value", prompt)
        self.assertTrue(prompt.endswith("Answer:"))


class TestAnswerGenerator(unittest.IsolatedAsyncioTestCase):
    async def test_generate_uses_answer_instructions(self):
        llm = RecordingLanguageModel()

        answer = await AnswerGenerator(llm).generate("What does processPayment do?", "ctx")

        self.assertEqual(answer, "The function charges the card.")
        self.assertEqual(llm.calls, [(build_prompt("What does processPayment do?", "ctx"), ANSWER_INSTRUCTIONS)])

    async def test_regenerate_with_feedback(self):
        llm = RecordingLanguageModel("Better answer")

        answer = await AnswerGenerator(llm).generate(
            "q", "ctx", prior_answer="weak", prior_reasoning="too vague", prior_score=0.3
        )

        self.assertEqual(answer, "Better answer")
        self.assertEqual(llm.calls[0][0], build_feedback_prompt("q", "ctx", "weak", "too vague", 0.3))


if __name__ == "__main__":
    unittest.main()
