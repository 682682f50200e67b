#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Иерархия ошибок пайплайна.

Каждая ошибка несёт `kind` (стабильное имя для API) и человекочитаемое
сообщение; дополнительный контекст (имя документа, число проиндексированных
чанков и т.п.) хранится в `context` и попадает в `to_dict()`.
"""

from typing import Any, Dict, Optional


class PipelineError(Exception):
    kind = "PipelineError"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = {k: v for k, v in context.items() if v is not None}

    @property
    def indexed_count(self) -> Optional[int]:
        return self.context.get("indexed_count")

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message, **self.context}


class ExtractionError(PipelineError):
    kind = "ExtractionError"


class UnsupportedFormat(ExtractionError):
    kind = "UnsupportedFormat"


class EmptyContent(PipelineError):
    kind = "EmptyContent"


class InvalidQuery(PipelineError):
    kind = "InvalidQuery"


class EmbeddingUnavailable(PipelineError):
    kind = "EmbeddingUnavailable"


class GenerationUnavailable(PipelineError):
    kind = "GenerationUnavailable"


class StoreWriteFailed(PipelineError):
    kind = "StoreWriteFailed"


class StoreQueryFailed(PipelineError):
    kind = "StoreQueryFailed"


class NamespaceNotFound(PipelineError):
    """Удаление неизвестного документа. Хранилище трактует это как успех."""
    kind = "NamespaceNotFound"
