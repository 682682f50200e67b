#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Фасад поиска по документам: индексация, вопросы, удаление, список файлов.

Все внешние клиенты (эмбеддинги, LLM, векторное хранилище) создаются один
раз в build_service и передаются компонентам явно.
"""

import logging
from typing import List, Optional

from .chunker import chunk_text
from .config import AppConfig
from .embeddings import EmbeddingGateway, make_embed_model
from .engine import AnswerSynthesizer
from .errors import EmptyContent, InvalidQuery
from .extractors import extract_text
from .indexer import DocumentIndexer
from .llm import GenerationGateway, OpenAIChatLLM
from .models import Answer, IndexResult
from .retriever import NamespaceRetriever
from .storage import LocalFileStore
from .vectorstore import VectorStore, WeaviateNamespaceStore, make_weaviate_client

logger = logging.getLogger(__name__)


class DocumentSearchService:
    def __init__(
        self,
        indexer: DocumentIndexer,
        retriever: NamespaceRetriever,
        synthesizer: AnswerSynthesizer,
        store: VectorStore,
        files: LocalFileStore,
        max_chunk_chars: int = 400,
    ) -> None:
        self.indexer = indexer
        self.retriever = retriever
        self.synthesizer = synthesizer
        self.store = store
        self.files = files
        self.max_chunk_chars = max_chunk_chars

    def index_document(self, document_id: str, text: str, replace: bool = False) -> IndexResult:
        """Режет текст на чанки и индексирует их в namespace документа.

        replace=True сначала очищает namespace, чтобы не остались чанки
        прошлой версии документа.
        """
        chunks = chunk_text(text, self.max_chunk_chars)
        if not chunks:
            raise EmptyContent("No readable text found in file.", document_id=document_id)
        if replace:
            self.store.delete_namespace(document_id)
        return self.indexer.index(document_id, chunks)

    def ingest_upload(self, filename: str, data: bytes, replace: bool = False) -> IndexResult:
        """Сохраняет загруженный файл, извлекает текст и индексирует его.

        Идентификатор документа - имя файла.
        """
        document_id = self.files.safe_name(filename)
        self.files.save(document_id, data)
        text = extract_text(data, document_id)
        if not text.strip():
            raise EmptyContent("No readable text found in file.", document_id=document_id)
        return self.index_document(document_id, text, replace=replace)

    def query(self, text: str, top_k_per_namespace: Optional[int] = None) -> Answer:
        if not text or not text.strip():
            raise InvalidQuery("Query required.")
        matches = self.retriever.retrieve(text, top_k_per_namespace)
        return self.synthesizer.synthesize(text, matches)

    def delete_document(self, document_id: str) -> None:
        """Удаляет namespace документа и сохранённый файл, независимо друг от друга.

        Файл удаляется только под точно тем же именем: id с путём
        ("notes/a.txt") чужой файл "a.txt" не трогает.
        """
        self.store.delete_namespace(document_id)
        if self.files.delete(document_id):
            logger.info("Deleted stored file %s", document_id)
        logger.info("Deleted document %s", document_id)

    def list_documents(self) -> List[str]:
        """Список документов по файловому хранилищу (не по векторному)."""
        return self.files.list()

    def close(self) -> None:
        self.store.close()


def build_service(cfg: AppConfig) -> DocumentSearchService:
    """Создаёт все клиенты один раз и собирает сервис."""
    embedder = EmbeddingGateway(make_embed_model(cfg.embedding))
    generator = GenerationGateway(OpenAIChatLLM.from_config(cfg.llm))

    store = WeaviateNamespaceStore(make_weaviate_client(cfg.vector_store), cfg.vector_store.collection_name)
    store.ensure_collection()

    return DocumentSearchService(
        indexer=DocumentIndexer(embedder, store),
        retriever=NamespaceRetriever(
            embedder, store, cfg.retrieval.top_k_per_namespace, min_score=cfg.retrieval.min_score,
        ),
        synthesizer=AnswerSynthesizer(
            generator,
            system_instruction=cfg.llm.system_prompt,
            temperature=cfg.llm.temperature,
            max_context_chars=cfg.retrieval.max_context_chars,
        ),
        store=store,
        files=LocalFileStore(cfg.storage.upload_dir),
        max_chunk_chars=cfg.indexing.max_chunk_chars,
    )
