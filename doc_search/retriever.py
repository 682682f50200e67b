#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import logging
from typing import List, Optional

from .embeddings import EmbeddingGateway
from .errors import PipelineError, StoreQueryFailed
from .models import Match, NamespaceFailure, RetrievalResult
from .vectorstore import VectorStore

logger = logging.getLogger(__name__)


class NamespaceRetriever:
    """Поиск по всем документам: отдельный top-K запрос в каждый namespace.

    Каждый документ даёт до K кандидатов независимо от того, насколько
    похожи чанки других документов. Результаты склеиваются в порядке
    namespace, внутри namespace - по рангу; общего реранкинга между namespace нет.
    """

    def __init__(
        self,
        embedder: EmbeddingGateway,
        store: VectorStore,
        top_k_per_namespace: int = 3,
        min_score: Optional[float] = None,
    ) -> None:
        self._embedder = embedder
        self._store = store
        self._top_k = top_k_per_namespace
        self._min_score = min_score

    def retrieve(self, query: str, top_k_per_namespace: Optional[int] = None) -> List[Match]:
        result = self.retrieve_all(query, top_k_per_namespace)
        for failure in result.failures:
            logger.warning("Namespace %s skipped: %s", failure.namespace, failure.error.message)
        return result.matches

    def retrieve_all(self, query: str, top_k_per_namespace: Optional[int] = None) -> RetrievalResult:
        """Выполняет fan-out поиск и собирает совпадения и отказы по namespace.

        Ошибка эмбеддинга запроса или перечисления namespace фатальна;
        ошибка запроса к одному namespace фиксируется и не мешает остальным.
        """
        top_k = self._top_k if top_k_per_namespace is None else top_k_per_namespace
        if top_k < 1:
            raise ValueError("top_k_per_namespace must be >= 1")

        vector = self._embedder.embed_query(query)
        try:
            namespaces = sorted(self._store.list_namespaces())
        except PipelineError:
            raise
        except Exception as exc:
            raise StoreQueryFailed(f"Cannot list namespaces: {exc}") from exc

        result = RetrievalResult()
        for namespace in namespaces:
            try:
                stored = self._store.query(namespace, vector, top_k=top_k, include_metadata=True)
            except PipelineError as exc:
                result.failures.append(NamespaceFailure(namespace=namespace, error=exc))
                continue
            except Exception as exc:
                err = StoreQueryFailed(f"Query of namespace {namespace} failed: {exc}", document_id=namespace)
                err.__cause__ = exc
                result.failures.append(NamespaceFailure(namespace=namespace, error=err))
                continue

            if self._min_score is not None:
                stored = [s for s in stored if s.score is None or s.score >= self._min_score]
            for rank, item in enumerate(stored):
                meta = item.metadata or {}
                result.matches.append(Match(
                    document_id=namespace,
                    text=meta.get("text") or "",
                    line_start=meta.get("lineStart"),
                    line_end=meta.get("lineEnd"),
                    rank=rank,
                    score=item.score,
                ))

        logger.info(
            "Retrieved %d matches from %d namespaces (%d failed)",
            len(result.matches), len(namespaces), len(result.failures),
        )
        return result
