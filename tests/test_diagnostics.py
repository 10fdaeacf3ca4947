"""Diagnostic tests for the embedding backends."""
from __future__ import annotations

import logging
import os
import unittest

from application.evaluation.metrics import cosine_similarity
from domain.entities import Query
from infrastructure.embedding.hash_embedder import HashEmbedder


class DiagnosticLoggingMixin:
    def setUp(self) -> None:
        logging.basicConfig(level=logging.DEBUG)


class TestHashEmbedder(DiagnosticLoggingMixin, unittest.IsolatedAsyncioTestCase):
    async def test_returns_consistent_dimensions(self) -> None:
        embedder = HashEmbedder(dimension=64)
        vectors = await embedder.embed_texts(["def process_payment(order)", "class PaymentGateway"])
        self.assertEqual(len(vectors), 2)
        self.assertEqual(len(vectors[0]), embedder.dimension)
        self.assertEqual(len(vectors[1]), embedder.dimension)

    async def test_identical_text_has_identical_embedding(self) -> None:
        embedder = HashEmbedder()
        first = await embedder.embed_query(Query(text="charge the customer card"))
        second = await embedder.embed_texts(["charge the customer card"])
        self.assertAlmostEqual(cosine_similarity(first, second[0]), 1.0)

    async def test_rejects_non_positive_dimension(self) -> None:
        with self.assertRaises(ValueError):
            HashEmbedder(dimension=0)


class TestSentenceTransformers(DiagnosticLoggingMixin, unittest.IsolatedAsyncioTestCase):
    async def test_sentence_transformers_embedder_optional(self) -> None:
        if os.getenv("CODEBASE_QA_ENABLE_ST"):
            from infrastructure.embedding.sentence_transformers_embedder import (  # noqa: PLC0415
                SentenceTransformersConfig,
                SentenceTransformersEmbedder,
            )

            embedder = SentenceTransformersEmbedder(SentenceTransformersConfig(model_name="sentence-transformers/all-MiniLM-L6-v2"))
            vector = await embedder.embed_query(Query(text="where is the payment processed"))
            self.assertEqual(len(vector), embedder.dimension)
        else:
            self.skipTest("CODEBASE_QA_ENABLE_ST is not set.")


if __name__ == "__main__":
    unittest.main()
