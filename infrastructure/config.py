"""Dependency wiring for the codebase question answering service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Literal, Mapping, get_args

from application.evaluation.models import RetrySettings
from application.evaluation.service import AnswerEvaluator
from application.services.graph_rag import GraphOptions
from application.services.sparse_vectors import Vocabulary
from application.use_cases.compress_context import ContextCompressor
from application.use_cases.generate_answer import AnswerGenerator
from application.use_cases.retrieve_context import ContextRetriever, RetrievalSettings
from application.use_cases.route_query import RetrievalRouter
from domain.entities import TransformationMode
from domain.interfaces import Embedder, LanguageModel, QueryRewriter, Reranker, VectorStore
from infrastructure.embedding.hash_embedder import HashEmbedder
from infrastructure.embedding.http_embedder import HttpEmbedder, HttpEmbedderConfig
from infrastructure.llm.http_language_model import HttpLanguageModel, LLMConfig, LLMProvider
from infrastructure.query.llm_reranker import LLMReranker
from infrastructure.query.llm_rewriter import LLMQueryRewriter, LLMRewriterConfig
from infrastructure.query.simple_reranker import SimpleReranker
from infrastructure.query.simple_rewriter import SimpleQueryRewriter
from infrastructure.storage.qdrant_vector_store import QdrantConfig, QdrantVectorStore
from infrastructure.vocabulary import load_vocabulary

logger = logging.getLogger(__name__)

EmbeddingProvider = Literal["sentence_transformers", "openai", "hash"]
RerankerProvider = Literal["llm", "simple"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_str(env: Mapping[str, str], name: str, default: str | None) -> str | None:
    value = env.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    value = _env_str(env, name, None)
    if value is None:
        return default
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got '{value}'")


def _env_int(env: Mapping[str, str], name: str, default: int, *, minimum: int = 1) -> int:
    value = _env_str(env, name, None)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got '{value}'") from exc
    if parsed < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {parsed}")
    return parsed


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    value = _env_str(env, name, None)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got '{value}'") from exc
    if not 0.0 <= parsed <= 1.0:
        raise ValueError(f"{name} must be between 0 and 1, got {parsed}")
    return parsed


def _env_choice(env: Mapping[str, str], name: str, default: str, choices: tuple[str, ...]) -> str:
    value = _env_str(env, name, default) or default
    if value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}, got '{value}'")
    return value


@dataclass(slots=True)
class ContainerConfig:
    """Process configuration; ``from_env`` reads it from environment variables."""

    qdrant_host: str = "localhost"
    qdrant_port: int = 6333
    qdrant_collection_name: str = "codebase"
    qdrant_api_key: str | None = None
    qdrant_use_https: bool = False

    llm_provider: LLMProvider = "openai"
    llm_base_url: str | None = None
    llm_api_key: str | None = None
    llm_model: str = "gpt-4o-mini"
    rerank_model: str | None = None

    embedding_provider: EmbeddingProvider = "sentence_transformers"
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_base_url: str = "https://api.openai.com/v1"
    embedding_api_key: str | None = None
    embedding_dimensions: int = 384

    retry_threshold: float = 0.6
    groundedness_threshold: float = 0.7
    hybrid_search_enabled: bool = True
    vocabulary_file_path: str = "./vocabulary.json"
    azure_storage_account_name: str | None = None
    azure_storage_account_key: str | None = None
    sparse_vector_name: str = "keyword_sparse"
    reranker_provider: RerankerProvider = "llm"
    reranker_initial_fetch_k: int = 50
    reranker_top_k: int = 5
    hierarchical_top_n_summaries: int = 3
    query_transformation_type: TransformationMode = "none"
    contextual_compression_enabled: bool = True
    max_context_length: int = 8000
    graph_options: GraphOptions = field(default_factory=GraphOptions)

    log_level: LogLevel = "INFO"
    log_file: str = "codebase_qa.log"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "ContainerConfig":
        source = os.environ if env is None else env
        defaults = cls()
        return cls(
            qdrant_host=_env_str(source, "QDRANT_HOST", defaults.qdrant_host),
            qdrant_port=_env_int(source, "QDRANT_PORT", defaults.qdrant_port),
            qdrant_collection_name=_env_str(source, "QDRANT_COLLECTION_NAME", defaults.qdrant_collection_name),
            qdrant_api_key=_env_str(source, "QDRANT_API_KEY", None),
            qdrant_use_https=_env_bool(source, "QDRANT_USE_HTTPS", defaults.qdrant_use_https),
            llm_provider=_env_choice(source, "LLM_PROVIDER", defaults.llm_provider, get_args(LLMProvider)),
            llm_base_url=_env_str(source, "LLM_BASE_URL", None),
            llm_api_key=_env_str(source, "LLM_API_KEY", None),
            llm_model=_env_str(source, "LLM_MODEL", defaults.llm_model),
            rerank_model=_env_str(source, "RERANK_MODEL", None),
            embedding_provider=_env_choice(
                source, "EMBEDDING_PROVIDER", defaults.embedding_provider, get_args(EmbeddingProvider)
            ),
            embedding_model=_env_str(source, "EMBEDDING_MODEL", defaults.embedding_model),
            embedding_base_url=_env_str(source, "EMBEDDING_BASE_URL", defaults.embedding_base_url),
            embedding_api_key=_env_str(source, "EMBEDDING_API_KEY", None),
            embedding_dimensions=_env_int(source, "EMBEDDING_DIMENSIONS", defaults.embedding_dimensions),
            retry_threshold=_env_float(source, "RETRY_THRESHOLD", defaults.retry_threshold),
            groundedness_threshold=_env_float(source, "GROUNDEDNESS_THRESHOLD", defaults.groundedness_threshold),
            hybrid_search_enabled=_env_bool(source, "HYBRID_SEARCH_ENABLED", defaults.hybrid_search_enabled),
            vocabulary_file_path=_env_str(source, "VOCABULARY_FILE_PATH", defaults.vocabulary_file_path),
            azure_storage_account_name=_env_str(source, "AZURE_STORAGE_ACCOUNT_NAME", None),
            azure_storage_account_key=_env_str(source, "AZURE_STORAGE_ACCOUNT_KEY", None),
            sparse_vector_name=_env_str(source, "SPARSE_VECTOR_NAME", defaults.sparse_vector_name),
            reranker_provider=_env_choice(
                source, "RERANKER_PROVIDER", defaults.reranker_provider, get_args(RerankerProvider)
            ),
            reranker_initial_fetch_k=_env_int(source, "RERANKER_INITIAL_FETCH_K", defaults.reranker_initial_fetch_k),
            reranker_top_k=_env_int(source, "RERANKER_TOP_K", defaults.reranker_top_k),
            hierarchical_top_n_summaries=_env_int(
                source, "HIERARCHICAL_TOP_N_SUMMARIES", defaults.hierarchical_top_n_summaries
            ),
            query_transformation_type=_env_choice(
                source, "QUERY_TRANSFORMATION_TYPE", defaults.query_transformation_type, get_args(TransformationMode)
            ),
            contextual_compression_enabled=_env_bool(
                source, "CONTEXTUAL_COMPRESSION_ENABLED", defaults.contextual_compression_enabled
            ),
            max_context_length=_env_int(source, "MAX_CONTEXT_LENGTH", defaults.max_context_length),
            log_level=_env_choice(source, "CODEBASE_QA_LOG_LEVEL", defaults.log_level, get_args(LogLevel)),
            log_file=_env_str(source, "CODEBASE_QA_LOG_FILE", defaults.log_file),
        )


@dataclass(slots=True)
class Container:
    """Service handles built once per process and passed to every pipeline run."""

    config: ContainerConfig
    llm: LanguageModel
    embedder: Embedder
    vector_store: VectorStore
    vocabulary: Vocabulary | None
    router: RetrievalRouter
    query_rewriter: QueryRewriter
    reranker: Reranker
    retriever: ContextRetriever
    compressor: ContextCompressor
    generator: AnswerGenerator
    evaluator: AnswerEvaluator
    retry_settings: RetrySettings


def _build_sentence_transformers(cfg: ContainerConfig) -> Embedder:
    from infrastructure.embedding.sentence_transformers_embedder import (
        SentenceTransformersConfig,
        SentenceTransformersEmbedder,
    )

    return SentenceTransformersEmbedder(SentenceTransformersConfig(model_name=cfg.embedding_model))


def _build_http_embedder(cfg: ContainerConfig) -> Embedder:
    return HttpEmbedder(
        HttpEmbedderConfig(
            model=cfg.embedding_model,
            dimension=cfg.embedding_dimensions,
            base_url=cfg.embedding_base_url,
            api_key=cfg.embedding_api_key,
        )
    )


_EMBEDDER_FACTORIES: dict[str, Callable[[ContainerConfig], Embedder]] = {
    "sentence_transformers": _build_sentence_transformers,
    "openai": _build_http_embedder,
    "hash": lambda cfg: HashEmbedder(cfg.embedding_dimensions),
}

_RERANKER_FACTORIES: dict[str, Callable[[LanguageModel], Reranker]] = {
    "llm": LLMReranker,
    "simple": lambda _llm: SimpleReranker(),
}


def _llm_config(cfg: ContainerConfig, model: str) -> LLMConfig:
    return LLMConfig(
        provider=cfg.llm_provider,
        model=model,
        base_url=cfg.llm_base_url,
        api_key=cfg.llm_api_key,
    )


def build_default_container(
    config: ContainerConfig | None = None,
    *,
    llm: LanguageModel | None = None,
    rerank_llm: LanguageModel | None = None,
    embedder: Embedder | None = None,
    vector_store: VectorStore | None = None,
    vocabulary: Vocabulary | None = None,
) -> Container:
    """Instantiate the default infrastructure stack; explicit services override it."""

    cfg = config or ContainerConfig.from_env()
    llm = llm or HttpLanguageModel(_llm_config(cfg, cfg.llm_model))
    if rerank_llm is None:
        rerank_llm = HttpLanguageModel(_llm_config(cfg, cfg.rerank_model)) if cfg.rerank_model else llm

    if embedder is None:
        try:
            embedder = _EMBEDDER_FACTORIES[cfg.embedding_provider](cfg)
        except KeyError as exc:  # pragma: no cover
            raise ValueError(f"Unknown embedding provider '{cfg.embedding_provider}'") from exc

    vector_store = vector_store or QdrantVectorStore(
        QdrantConfig(
            host=cfg.qdrant_host,
            port=cfg.qdrant_port,
            api_key=cfg.qdrant_api_key,
            https=cfg.qdrant_use_https,
            hybrid_enabled=cfg.hybrid_search_enabled,
            sparse_vector_name=cfg.sparse_vector_name,
        )
    )

    if vocabulary is None and cfg.hybrid_search_enabled:
        vocabulary = load_vocabulary(
            cfg.vocabulary_file_path,
            account_name=cfg.azure_storage_account_name,
            account_key=cfg.azure_storage_account_key,
        )
        if vocabulary is None:
            logger.warning("Vocabulary unavailable; hybrid search falls back to dense-only.")

    try:
        reranker = _RERANKER_FACTORIES[cfg.reranker_provider](rerank_llm)
    except KeyError as exc:  # pragma: no cover
        raise ValueError(f"Unknown reranker provider '{cfg.reranker_provider}'") from exc

    if cfg.query_transformation_type == "none":
        query_rewriter: QueryRewriter = SimpleQueryRewriter()
    else:
        query_rewriter = LLMQueryRewriter(llm, LLMRewriterConfig(mode=cfg.query_transformation_type))

    retriever = ContextRetriever(
        embedder=embedder,
        vector_store=vector_store,
        reranker=reranker,
        vocabulary=vocabulary,
        settings=RetrievalSettings(
            collection_name=cfg.qdrant_collection_name,
            hybrid_enabled=cfg.hybrid_search_enabled,
            sparse_vector_name=cfg.sparse_vector_name,
            initial_fetch_k=cfg.reranker_initial_fetch_k,
            top_k=cfg.reranker_top_k,
            hierarchical_top_n=cfg.hierarchical_top_n_summaries,
            graph_options=cfg.graph_options,
        ),
    )

    return Container(
        config=cfg,
        llm=llm,
        embedder=embedder,
        vector_store=vector_store,
        vocabulary=vocabulary,
        router=RetrievalRouter(llm),
        query_rewriter=query_rewriter,
        reranker=reranker,
        retriever=retriever,
        compressor=ContextCompressor(llm, enabled=cfg.contextual_compression_enabled),
        generator=AnswerGenerator(llm),
        evaluator=AnswerEvaluator(llm, embedder, groundedness_threshold=cfg.groundedness_threshold),
        retry_settings=RetrySettings(
            retry_threshold=cfg.retry_threshold,
            max_context_length=cfg.max_context_length,
        ),
    )


__all__ = ["Container", "ContainerConfig", "build_default_container"]
