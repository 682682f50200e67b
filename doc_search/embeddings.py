#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Шлюз эмбеддингов поверх модели llama-index (HuggingFace или OpenAI)."""

import logging
from typing import List, Optional

from llama_index.core.base.embeddings.base import BaseEmbedding

from .config import EmbeddingConfig
from .errors import EmbeddingUnavailable

logger = logging.getLogger(__name__)


def make_embed_model(cfg: EmbeddingConfig) -> BaseEmbedding:
    """Создаёт модель эмбеддингов согласно конфигу.

    - huggingface: локальная модель (по умолчанию BAAI/bge-small-en-v1.5)
    - openai: API OpenAI (например, text-embedding-3-small)
    """
    provider = cfg.provider.lower()
    if provider == "huggingface":
        from llama_index.embeddings.huggingface import HuggingFaceEmbedding

        return HuggingFaceEmbedding(model_name=cfg.model_name, embed_batch_size=cfg.embed_batch_size)
    if provider == "openai":
        from llama_index.embeddings.openai import OpenAIEmbedding

        return OpenAIEmbedding(model=cfg.model_name, api_key=cfg.api_key, embed_batch_size=cfg.embed_batch_size)
    raise ValueError(f"Unknown embedding provider: {cfg.provider}")


class EmbeddingGateway:
    """Превращает текст в вектор фиксированной размерности.

    Любая ошибка модели (сеть, квоты, загрузка весов) поднимается как
    EmbeddingUnavailable с исходным исключением в __cause__.
    """

    def __init__(self, embed_model: BaseEmbedding) -> None:
        self._model = embed_model
        self._dimension: Optional[int] = None

    def embed(self, text: str) -> List[float]:
        try:
            vector = self._model.get_text_embedding(text)
        except Exception as exc:
            raise EmbeddingUnavailable(f"Embedding request failed: {exc}") from exc
        return self._remember_dimension(vector)

    def embed_query(self, text: str) -> List[float]:
        try:
            vector = self._model.get_query_embedding(text)
        except Exception as exc:
            raise EmbeddingUnavailable(f"Query embedding request failed: {exc}") from exc
        return self._remember_dimension(vector)

    @property
    def dimension(self) -> int:
        if self._dimension is None:
            self.embed("dimension probe")
        return self._dimension  # type: ignore[return-value]

    def _remember_dimension(self, vector: List[float]) -> List[float]:
        vector = [float(v) for v in vector]
        if self._dimension is None:
            self._dimension = len(vector)
            logger.debug("Embedding dimension: %d", self._dimension)
        elif len(vector) != self._dimension:
            raise EmbeddingUnavailable(
                f"Embedding dimension changed: expected {self._dimension}, got {len(vector)}"
            )
        return vector
