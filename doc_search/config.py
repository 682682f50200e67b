#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import os
from dataclasses import dataclass, field
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    if raw.strip().lower() == "none":
        return None
    return int(raw)


@dataclass
class EmbeddingConfig:
    """Параметры модели эмбеддингов.

    - provider: "huggingface" (локальная модель) или "openai"
    - model_name: имя модели для векторизации текста
    - api_key: ключ OpenAI (только для provider="openai")
    - embed_batch_size: размер батча внутри модели llama-index
    """
    provider: str = "huggingface"
    model_name: str = "BAAI/bge-small-en-v1.5"
    api_key: Optional[str] = None
    embed_batch_size: int = 32


@dataclass
class VectorStoreConfig:
    """Параметры векторного хранилища (Weaviate, multi-tenancy).

    - collection_name: коллекция Weaviate; каждый документ - отдельный tenant
    - use_embedded: использовать ли встроенный (embedded) Weaviate
    - weaviate_url: URL удалённого Weaviate (если используется)
    - weaviate_api_key: API-ключ для удалённого Weaviate (опционально)
    """
    collection_name: str = "NotesSearch"
    use_embedded: bool = True
    weaviate_url: Optional[str] = None
    weaviate_api_key: Optional[str] = None


@dataclass
class LLMConfig:
    """Параметры языковой модели (OpenAI-совместимый API).

    - base_url: базовый URL сервиса LLM (None - официальный API OpenAI)
    - temperature: температура генерации ответа (почти детерминированно)
    - system_prompt: инструкция для роли system
    """
    base_url: Optional[str] = None
    api_key: str = "test"
    model_name: str = "gpt-4o-mini"
    temperature: float = 0.03
    top_p: float = 0.9
    max_tokens: int = 800
    system_prompt: str = (
        "You are a helpful assistant that answers based only on the provided "
        "document text. Be concise and accurate."
    )


@dataclass
class IndexingConfig:
    """Параметры нарезки документов на чанки.

    - max_chunk_chars: мягкая граница длины чанка в символах
    """
    max_chunk_chars: int = 400


@dataclass
class RetrievalConfig:
    """Параметры извлечения и сборки контекста.

    - top_k_per_namespace: сколько кандидатов брать из каждого документа
    - max_context_chars: лимит длины контекста для LLM (None - без лимита)
    - min_score: отбрасывать совпадения с меньшей похожестью (None - не фильтровать)
    """
    top_k_per_namespace: int = 3
    max_context_chars: Optional[int] = 12000
    min_score: Optional[float] = None


@dataclass
class StorageConfig:
    """Каталог для загруженных файлов."""
    upload_dir: str = "uploads"


@dataclass
class AppConfig:
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    vector_store: VectorStoreConfig = field(default_factory=VectorStoreConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    indexing: IndexingConfig = field(default_factory=IndexingConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Собирает конфиг из переменных окружения (DOC_SEARCH_*, OPENAI_API_KEY).

        Незаданные переменные оставляют значения по умолчанию.
        """
        openai_key = os.getenv("OPENAI_API_KEY")
        weaviate_url = os.getenv("DOC_SEARCH_WEAVIATE_URL") or None

        embedding = EmbeddingConfig(
            provider=os.getenv("DOC_SEARCH_EMBEDDING_PROVIDER", EmbeddingConfig.provider),
            model_name=os.getenv("DOC_SEARCH_EMBEDDING_MODEL", EmbeddingConfig.model_name),
            api_key=openai_key,
        )
        vector_store = VectorStoreConfig(
            collection_name=os.getenv("DOC_SEARCH_COLLECTION", VectorStoreConfig.collection_name),
            use_embedded=_env_bool("DOC_SEARCH_WEAVIATE_EMBEDDED", weaviate_url is None),
            weaviate_url=weaviate_url,
            weaviate_api_key=os.getenv("DOC_SEARCH_WEAVIATE_API_KEY") or None,
        )
        llm = LLMConfig(
            base_url=os.getenv("DOC_SEARCH_LLM_BASE_URL") or None,
            api_key=openai_key or LLMConfig.api_key,
            model_name=os.getenv("DOC_SEARCH_LLM_MODEL", LLMConfig.model_name),
            temperature=float(os.getenv("DOC_SEARCH_LLM_TEMPERATURE", LLMConfig.temperature)),
        )
        indexing = IndexingConfig(
            max_chunk_chars=_env_int("DOC_SEARCH_MAX_CHUNK_CHARS", IndexingConfig.max_chunk_chars),
        )
        retrieval = RetrievalConfig(
            top_k_per_namespace=_env_int("DOC_SEARCH_TOP_K", RetrievalConfig.top_k_per_namespace),
            max_context_chars=_env_int("DOC_SEARCH_MAX_CONTEXT_CHARS", RetrievalConfig.max_context_chars),
            min_score=float(os.environ["DOC_SEARCH_MIN_SCORE"]) if os.getenv("DOC_SEARCH_MIN_SCORE") else None,
        )
        storage = StorageConfig(upload_dir=os.getenv("DOC_SEARCH_UPLOAD_DIR", StorageConfig.upload_dir))
        return cls(
            embedding=embedding,
            vector_store=vector_store,
            llm=llm,
            indexing=indexing,
            retrieval=retrieval,
            storage=storage,
            log_level=os.getenv("DOC_SEARCH_LOG_LEVEL", "INFO"),
        )
