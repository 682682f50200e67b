"""
Общие фикстуры и заглушки внешних сервисов для тестов.

- VocabEmbedding: модель llama-index с детерминированными «мешок слов» векторами
- InMemoryVectorStore: namespace-хранилище в памяти (косинусная близость)
- RecordingGenerator: заглушка шлюза генерации, запоминающая вызовы
"""

import math
import re
from typing import Any, Dict, List, Optional, Sequence, Set

import pytest
from llama_index.core.base.embeddings.base import BaseEmbedding
from pydantic import PrivateAttr

from doc_search.embeddings import EmbeddingGateway
from doc_search.engine import AnswerSynthesizer
from doc_search.errors import StoreQueryFailed, StoreWriteFailed
from doc_search.indexer import DocumentIndexer
from doc_search.models import StoredMatch
from doc_search.retriever import NamespaceRetriever
from doc_search.service import DocumentSearchService
from doc_search.storage import LocalFileStore
from doc_search.vectorstore import VectorStore


class VocabEmbedding(BaseEmbedding):
    """Каждое новое слово получает свою ось, поэтому тексты без общих слов ортогональны."""

    dim: int = 512
    _vocab: Dict[str, int] = PrivateAttr(default_factory=dict)

    def _vector(self, text: str) -> List[float]:
        vec = [0.0] * self.dim
        for word in re.findall(r"\w+", text.lower()):
            idx = self._vocab.setdefault(word, len(self._vocab) % self.dim)
            vec[idx] += 1.0
        return vec

    def _get_text_embedding(self, text: str) -> List[float]:
        return self._vector(text)

    def _get_query_embedding(self, query: str) -> List[float]:
        return self._vector(query)

    async def _aget_query_embedding(self, query: str) -> List[float]:
        return self._vector(query)


def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryVectorStore(VectorStore):
    def __init__(self) -> None:
        self.namespaces: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.upserts: List[tuple] = []
        self.failing_query_namespaces: Set[str] = set()
        self.fail_upsert_after: Optional[int] = None

    def upsert(self, namespace, record_id, vector, metadata) -> None:
        if self.fail_upsert_after is not None and len(self.upserts) >= self.fail_upsert_after:
            raise StoreWriteFailed(f"store unavailable for {record_id}")
        self.upserts.append((namespace, record_id))
        self.namespaces.setdefault(namespace, {})[record_id] = {"vector": list(vector), "metadata": dict(metadata)}

    def query(self, namespace, vector, top_k, include_metadata=True) -> List[StoredMatch]:
        if namespace in self.failing_query_namespaces:
            raise StoreQueryFailed(f"namespace {namespace} unavailable")
        records = self.namespaces.get(namespace, {})
        scored = sorted(
            ((_cosine(vector, r["vector"]), rid, r["metadata"]) for rid, r in records.items()),
            key=lambda t: (-t[0], t[1]),
        )
        return [
            StoredMatch(id=rid, score=score, metadata=dict(meta) if include_metadata else {})
            for score, rid, meta in scored[:top_k]
        ]

    def list_namespaces(self) -> Set[str]:
        return set(self.namespaces)

    def delete_namespace(self, namespace) -> None:
        self.namespaces.pop(namespace, None)


class RecordingGenerator:
    def __init__(self, answer: str = "  generated answer \n") -> None:
        self.answer = answer
        self.calls: List[Dict[str, Any]] = []

    def generate(self, system_instruction: str, user_prompt: str, temperature: float) -> str:
        self.calls.append({
            "system_instruction": system_instruction,
            "user_prompt": user_prompt,
            "temperature": temperature,
        })
        return self.answer


@pytest.fixture
def embedder() -> EmbeddingGateway:
    return EmbeddingGateway(VocabEmbedding())


@pytest.fixture
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def generator() -> RecordingGenerator:
    return RecordingGenerator()


@pytest.fixture
def service(tmp_path, embedder, store, generator) -> DocumentSearchService:
    return DocumentSearchService(
        indexer=DocumentIndexer(embedder, store),
        retriever=NamespaceRetriever(embedder, store, top_k_per_namespace=3),
        synthesizer=AnswerSynthesizer(generator, max_context_chars=None),
        store=store,
        files=LocalFileStore(str(tmp_path / "uploads")),
    )
