#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import logging
from typing import Sequence

from .embeddings import EmbeddingGateway
from .errors import PipelineError, StoreWriteFailed
from .models import ChunkRecord, IndexResult, VectorRecord
from .vectorstore import VectorStore

logger = logging.getLogger(__name__)


class DocumentIndexer:
    """Индексатор чанков документа в векторное хранилище.

    Для каждого чанка по порядку:
    1) запрашивает эмбеддинг текста
    2) строит запись с id "{document_id}-{ordinal}"
    3) делает upsert в namespace = document_id

    Повторная индексация перезаписывает записи с теми же номерами, но не
    удаляет «хвост» от прошлой версии с большим числом чанков: для замены
    структуры документа вызывающий сначала удаляет его namespace.
    """

    def __init__(self, embedder: EmbeddingGateway, store: VectorStore) -> None:
        self._embedder = embedder
        self._store = store

    def index(self, document_id: str, chunks: Sequence[ChunkRecord]) -> IndexResult:
        """Индексирует чанки последовательно; при первой ошибке останавливается.

        Ошибка (EmbeddingUnavailable / StoreWriteFailed) получает в контекст
        document_id и indexed_count - сколько чанков успели записаться.
        Неожиданное исключение хранилища оборачивается в StoreWriteFailed.
        Уже записанные чанки не откатываются.
        """
        indexed = 0
        for chunk in chunks:
            try:
                vector = self._embedder.embed(chunk.text)
                record = VectorRecord.from_chunk(document_id, chunk, vector)
                self._upsert(document_id, record)
            except PipelineError as exc:
                exc.context.update(document_id=document_id, indexed_count=indexed)
                logger.error(
                    "Indexing %s aborted at chunk %d (%d/%d indexed): %s",
                    document_id, chunk.ordinal, indexed, len(chunks), exc.message,
                )
                raise
            indexed += 1
            logger.debug("Indexed %s chunk %d (lines %d-%d)", document_id, chunk.ordinal, chunk.line_start, chunk.line_end)

        logger.info("Indexed %s: %d chunks", document_id, indexed)
        return IndexResult(document_id=document_id, chunk_count=indexed)

    def _upsert(self, document_id: str, record: VectorRecord) -> None:
        try:
            self._store.upsert(document_id, record.id, record.vector, record.metadata)
        except PipelineError:
            raise
        except Exception as exc:
            raise StoreWriteFailed(f"Upsert of {record.id} failed: {exc}") from exc
