import importlib.util
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from infrastructure.config import ContainerConfig


class TestContainerConfigFromEnv(unittest.TestCase):
    def test_defaults(self):
        cfg = ContainerConfig.from_env({})

        self.assertEqual(cfg.qdrant_host, "localhost")
        self.assertEqual(cfg.qdrant_port, 6333)
        self.assertFalse(cfg.qdrant_use_https)
        self.assertEqual(cfg.llm_provider, "openai")
        self.assertEqual(cfg.retry_threshold, 0.6)
        self.assertEqual(cfg.groundedness_threshold, 0.7)
        self.assertTrue(cfg.hybrid_search_enabled)
        self.assertEqual(cfg.sparse_vector_name, "keyword_sparse")
        self.assertEqual(cfg.reranker_initial_fetch_k, 50)
        self.assertEqual(cfg.reranker_top_k, 5)
        self.assertEqual(cfg.hierarchical_top_n_summaries, 3)
        self.assertEqual(cfg.query_transformation_type, "none")
        self.assertTrue(cfg.contextual_compression_enabled)
        self.assertEqual(cfg.max_context_length, 8000)

    def test_reads_values(self):
        cfg = ContainerConfig.from_env(
            {
                "QDRANT_HOST": "qdrant.internal",
                "QDRANT_PORT": "6334",
                "QDRANT_USE_HTTPS": "true",
                "QDRANT_COLLECTION_NAME": "shop",
                "LLM_PROVIDER": "ollama",
                "LLM_MODEL": "llama3",
                "EMBEDDING_PROVIDER": "hash",
                "EMBEDDING_DIMENSIONS": "64",
                "RETRY_THRESHOLD": "0.75",
                "HYBRID_SEARCH_ENABLED": "no",
                "RERANKER_PROVIDER": "simple",
                "RERANKER_TOP_K": "8",
                "QUERY_TRANSFORMATION_TYPE": "sub_queries",
                "CONTEXTUAL_COMPRESSION_ENABLED": "0",
            }
        )

        self.assertEqual(cfg.qdrant_host, "qdrant.internal")
        self.assertEqual(cfg.qdrant_port, 6334)
        self.assertTrue(cfg.qdrant_use_https)
        self.assertEqual(cfg.qdrant_collection_name, "shop")
        self.assertEqual(cfg.llm_provider, "ollama")
        self.assertEqual(cfg.llm_model, "llama3")
        self.assertEqual(cfg.embedding_provider, "hash")
        self.assertEqual(cfg.embedding_dimensions, 64)
        self.assertEqual(cfg.retry_threshold, 0.75)
        self.assertFalse(cfg.hybrid_search_enabled)
        self.assertEqual(cfg.reranker_provider, "simple")
        self.assertEqual(cfg.reranker_top_k, 8)
        self.assertEqual(cfg.query_transformation_type, "sub_queries")
        self.assertFalse(cfg.contextual_compression_enabled)

    def test_storage_credentials_and_logging(self):
        defaults = ContainerConfig.from_env({})
        self.assertIsNone(defaults.azure_storage_account_name)
        self.assertIsNone(defaults.azure_storage_account_key)
        self.assertEqual(defaults.log_level, "INFO")
        self.assertEqual(defaults.log_file, "codebase_qa.log")

        cfg = ContainerConfig.from_env(
            {
                "AZURE_STORAGE_ACCOUNT_NAME": "acme",
                "AZURE_STORAGE_ACCOUNT_KEY": "c2VjcmV0",
                "CODEBASE_QA_LOG_LEVEL": "DEBUG",
                "CODEBASE_QA_LOG_FILE": "/var/log/qa.log",
            }
        )
        self.assertEqual(cfg.azure_storage_account_name, "acme")
        self.assertEqual(cfg.azure_storage_account_key, "c2VjcmV0")
        self.assertEqual(cfg.log_level, "DEBUG")
        self.assertEqual(cfg.log_file, "/var/log/qa.log")

    def test_blank_values_use_defaults(self):
        cfg = ContainerConfig.from_env({"QDRANT_HOST": "  ", "RERANKER_TOP_K": ""})
        self.assertEqual(cfg.qdrant_host, "localhost")
        self.assertEqual(cfg.reranker_top_k, 5)

    def test_invalid_values_raise(self):
        invalid = [
            {"QDRANT_PORT": "abc"},
            {"RERANKER_TOP_K": "0"},
            {"RETRY_THRESHOLD": "1.5"},
            {"GROUNDEDNESS_THRESHOLD": "high"},
            {"HYBRID_SEARCH_ENABLED": "maybe"},
            {"LLM_PROVIDER": "bedrock"},
            {"QUERY_TRANSFORMATION_TYPE": "expand"},
            {"CODEBASE_QA_LOG_LEVEL": "VERBOSE"},
        ]
        for env in invalid:
            with self.subTest(env=env):
                with self.assertRaises(ValueError):
                    ContainerConfig.from_env(env)


@unittest.skipIf(importlib.util.find_spec("qdrant_client") is None, "qdrant-client is not installed")
class TestBuildDefaultContainer(unittest.TestCase):
    def test_wires_injected_services(self):
        from application.use_cases.retrieve_context import ContextRetriever
        from infrastructure.config import build_default_container
        from infrastructure.embedding.hash_embedder import HashEmbedder
        from infrastructure.query.simple_reranker import SimpleReranker
        from infrastructure.query.simple_rewriter import SimpleQueryRewriter

        llm = mock.Mock()
        store = mock.Mock()
        embedder = HashEmbedder(dimension=16)
        cfg = ContainerConfig(hybrid_search_enabled=False, reranker_provider="simple")

        container = build_default_container(cfg, llm=llm, embedder=embedder, vector_store=store)

        self.assertIs(container.llm, llm)
        self.assertIs(container.embedder, embedder)
        self.assertIs(container.vector_store, store)
        self.assertIsNone(container.vocabulary)
        self.assertIsInstance(container.reranker, SimpleReranker)
        self.assertIsInstance(container.query_rewriter, SimpleQueryRewriter)
        self.assertIsInstance(container.retriever, ContextRetriever)
        self.assertEqual(container.retry_settings.retry_threshold, 0.6)

    def test_storage_credentials_reach_vocabulary_loader(self):
        from infrastructure.config import build_default_container
        from infrastructure.embedding.hash_embedder import HashEmbedder

        cfg = ContainerConfig(
            vocabulary_file_path="https://acme.blob.core.windows.net/vocab/vocabulary.json",
            azure_storage_account_name="acme",
            azure_storage_account_key="c2VjcmV0",
            reranker_provider="simple",
        )
        with mock.patch("infrastructure.config.load_vocabulary", return_value={"payment": 1}) as loader:
            container = build_default_container(
                cfg, llm=mock.Mock(), embedder=HashEmbedder(dimension=8), vector_store=mock.Mock()
            )

        loader.assert_called_once_with(
            "https://acme.blob.core.windows.net/vocab/vocabulary.json",
            account_name="acme",
            account_key="c2VjcmV0",
        )
        self.assertEqual(container.vocabulary, {"payment": 1})

    def test_builds_llm_services_from_config(self):
        from infrastructure.config import build_default_container
        from infrastructure.embedding.hash_embedder import HashEmbedder
        from infrastructure.llm.http_language_model import HttpLanguageModel
        from infrastructure.query.llm_reranker import LLMReranker
        from infrastructure.query.llm_rewriter import LLMQueryRewriter
        from infrastructure.storage.qdrant_vector_store import QdrantVectorStore

        with tempfile.TemporaryDirectory() as tmp:
            vocabulary_path = Path(tmp) / "vocabulary.json"
            vocabulary_path.write_text(json.dumps({"payment": 3}), encoding="utf-8")
            cfg = ContainerConfig(
                llm_api_key="sk-test",
                embedding_provider="hash",
                embedding_dimensions=32,
                vocabulary_file_path=str(vocabulary_path),
                query_transformation_type="rewrite",
            )

            container = build_default_container(cfg)

        self.assertIsInstance(container.llm, HttpLanguageModel)
        self.assertIsInstance(container.embedder, HashEmbedder)
        self.assertEqual(container.embedder.dimension, 32)
        self.assertIsInstance(container.vector_store, QdrantVectorStore)
        self.assertEqual(container.vocabulary, {"payment": 3})
        self.assertIsInstance(container.reranker, LLMReranker)
        self.assertIsInstance(container.query_rewriter, LLMQueryRewriter)


if __name__ == "__main__":
    unittest.main()
