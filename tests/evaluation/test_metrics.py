import unittest

from application.evaluation.metrics import cosine_similarity, is_grounded_score


class TestEvaluationMetrics(unittest.TestCase):
    def test_cosine_similarity(self):
        self.assertAlmostEqual(cosine_similarity([1.0, 0.0], [1.0, 0.0]), 1.0)
        self.assertAlmostEqual(cosine_similarity([1.0, 0.0], [0.0, 1.0]), 0.0)
        self.assertAlmostEqual(cosine_similarity([1.0, 1.0], [-1.0, -1.0]), -1.0)
        self.assertAlmostEqual(cosine_similarity([3.0, 4.0], [6.0, 8.0]), 1.0)

    def test_zero_vector_has_zero_similarity(self):
        self.assertEqual(cosine_similarity([0.0, 0.0], [1.0, 2.0]), 0.0)

    def test_length_mismatch_raises(self):
        with self.assertRaises(ValueError):
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])

    def test_grounded_threshold_is_strict(self):
        self.assertTrue(is_grounded_score(0.71, 0.7))
        self.assertFalse(is_grounded_score(0.7, 0.7))
        self.assertFalse(is_grounded_score(0.2, 0.7))


if __name__ == "__main__":
    unittest.main()
