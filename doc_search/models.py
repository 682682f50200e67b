#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import PipelineError


@dataclass(frozen=True)
class ChunkRecord:
    """Фрагмент документа: порядковый номер, текст и синтетический диапазон строк.

    Диапазон строк выводится только из номера чанка и служит стабильной
    ссылкой для цитирования, а не реальной позицией в исходном файле.
    """
    ordinal: int
    text: str
    line_start: int
    line_end: int


@dataclass
class VectorRecord:
    """Запись векторного хранилища: id, эмбеддинг и метаданные чанка."""
    id: str
    vector: List[float]
    metadata: Dict[str, Any]

    @classmethod
    def from_chunk(cls, document_id: str, chunk: ChunkRecord, vector: List[float]) -> "VectorRecord":
        return cls(
            id=record_id(document_id, chunk.ordinal),
            vector=list(vector),
            metadata={
                "file": document_id,
                "chunkIndex": chunk.ordinal,
                "lineStart": chunk.line_start,
                "lineEnd": chunk.line_end,
                "text": chunk.text,
            },
        )


def record_id(document_id: str, ordinal: int) -> str:
    return f"{document_id}-{ordinal}"


@dataclass(frozen=True)
class StoredMatch:
    """Сырой результат запроса к хранилищу в рамках одного namespace."""
    id: str
    score: Optional[float]
    metadata: Dict[str, Any]


@dataclass(frozen=True)
class Match:
    document_id: str
    text: str
    line_start: Optional[int]
    line_end: Optional[int]
    rank: int
    score: Optional[float] = None

    def as_source(self) -> Dict[str, Any]:
        return {
            "documentId": self.document_id,
            "lineStart": self.line_start,
            "lineEnd": self.line_end,
            "text": self.text,
        }


@dataclass
class Answer:
    text: str
    sources: List[Match] = field(default_factory=list)


@dataclass
class IndexResult:
    document_id: str
    chunk_count: int


@dataclass
class NamespaceFailure:
    namespace: str
    error: PipelineError


@dataclass
class RetrievalResult:
    """Объединённый итог fan-out поиска: найденные совпадения и отказы по namespace."""
    matches: List[Match] = field(default_factory=list)
    failures: List[NamespaceFailure] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failures
