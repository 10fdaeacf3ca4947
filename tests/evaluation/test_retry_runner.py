import unittest
from unittest import mock

from application.evaluation.models import RetrySettings
from application.evaluation.runner import NO_CONTEXT_ANSWER, evaluate_and_retry
from domain.entities import EvaluationResult


def evaluation(answer, overall, grounded=True, reasoning="ok"):
    return EvaluationResult(
        answer=answer,
        accuracy=overall,
        relevance=overall,
        completeness=overall,
        coherence=overall,
        overall=overall,
        reasoning=reasoning,
        is_grounded=grounded,
    )


class TestEvaluateAndRetry(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.evaluator = mock.AsyncMock()
        self.generator = mock.AsyncMock()

    async def test_good_answer_is_kept(self):
        self.evaluator.evaluate.return_value = evaluation("first", 0.8)

        result = await evaluate_and_retry(
            "q", "ctx", "first", evaluator=self.evaluator, generator=self.generator
        )

        self.assertEqual(result.final_answer, "first")
        self.assertEqual(result.evaluation_score, 0.8)
        self.assertTrue(result.is_grounded)
        self.generator.generate.assert_not_awaited()

    async def test_low_score_regenerates_once(self):
        self.evaluator.evaluate.side_effect = [
            evaluation("first", 0.3, reasoning="too vague"),
            evaluation("second", 0.5, grounded=False),
        ]
        self.generator.generate.return_value = "second"

        result = await evaluate_and_retry(
            "q", "ctx", "first", evaluator=self.evaluator, generator=self.generator
        )

        self.assertEqual(result.final_answer, "second")
        self.assertEqual(result.evaluation_score, 0.5)
        self.assertFalse(result.is_grounded)
        self.generator.generate.assert_awaited_once_with(
            "q", "ctx", prior_answer="first", prior_reasoning="too vague", prior_score=0.3
        )
        self.assertEqual(self.evaluator.evaluate.await_count, 2)

    async def test_threshold_boundary_does_not_retry(self):
        self.evaluator.evaluate.return_value = evaluation("first", 0.6)

        await evaluate_and_retry("q", "ctx", "first", evaluator=self.evaluator, generator=self.generator)

        self.generator.generate.assert_not_awaited()

    async def test_empty_context_short_circuits(self):
        result = await evaluate_and_retry(
            "q", "  ", "first", evaluator=self.evaluator, generator=self.generator
        )

        self.assertEqual(result.final_answer, NO_CONTEXT_ANSWER)
        self.assertIsNone(result.evaluation_score)
        self.assertEqual(result.to_dict(), {"finalAnswer": NO_CONTEXT_ANSWER})
        self.evaluator.evaluate.assert_not_awaited()

    async def test_context_is_truncated(self):
        self.evaluator.evaluate.return_value = evaluation("first", 0.9)
        settings = RetrySettings(retry_threshold=0.6, max_context_length=5)

        await evaluate_and_retry(
            "q", "0123456789", "first", evaluator=self.evaluator, generator=self.generator, settings=settings
        )

        self.evaluator.evaluate.assert_awaited_once_with("first", "q", "01234")


if __name__ == "__main__":
    unittest.main()
