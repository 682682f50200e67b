#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import logging
import time
from functools import lru_cache
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from doc_search.config import AppConfig
from doc_search.errors import (
    EmptyContent,
    ExtractionError,
    InvalidQuery,
    PipelineError,
)
from doc_search.logging_config import configure_logging
from doc_search.service import DocumentSearchService, build_service

load_dotenv()
CONFIG = AppConfig.from_env()
configure_logging(CONFIG.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Smart Document Search API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.mount("/uploads", StaticFiles(directory=CONFIG.storage.upload_dir, check_dir=False), name="uploads")


@lru_cache(maxsize=1)
def get_service() -> DocumentSearchService:
    """Сервис создаётся один раз на процесс вместе со всеми внешними клиентами."""
    return build_service(CONFIG)


# 400 - ошибки входных данных, 502 - отказ внешнего сервиса (эмбеддинги, LLM, хранилище)
_CLIENT_ERRORS = (ExtractionError, EmptyContent, InvalidQuery)


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, PipelineError):
        status = 400 if isinstance(exc, _CLIENT_ERRORS) else 502
        return HTTPException(status_code=status, detail=exc.to_dict())
    if isinstance(exc, ValueError):
        return HTTPException(status_code=400, detail={"kind": "InvalidRequest", "message": str(exc)})
    return HTTPException(status_code=500, detail={"kind": "InternalError", "message": str(exc)})


class IndexRequest(BaseModel):
    """Тело запроса для индексации уже извлечённого текста документа."""
    # Без компонентов пути: id совпадает с именем файла в каталоге загрузок
    document_id: str = Field(..., min_length=1, pattern=r"^[^/\\]+$")
    text: str
    replace: bool = False


class IndexResponse(BaseModel):
    document_id: str
    chunks: int
    took_ms: int


class UploadResponse(BaseModel):
    """Ответ на загрузку файла: имя, число чанков и длительность."""
    success: bool = True
    message: str
    chunks: int
    took_ms: int


class SearchRequest(BaseModel):
    query: str
    top_k: Optional[int] = Field(None, ge=1, description="Кандидатов на документ")


class SearchResponse(BaseModel):
    """Ответ на вопрос: текст ответа, источники (файл, строки, фрагмент) и время."""
    answer: str
    sources: List[Dict[str, Any]]
    took_ms: int


@app.get("/health")
def health() -> Dict[str, str]:
    """Простой health-check эндпоинт для мониторинга/оркестраторов."""
    return {"status": "ok"}


@app.post("/upload", response_model=UploadResponse)
def upload(
    file: UploadFile = File(...),
    replace: bool = Form(False),
    service: DocumentSearchService = Depends(get_service),
) -> UploadResponse:
    """Сохраняет файл (PDF/TXT/HTML), извлекает текст и индексирует его в namespace файла."""
    t0 = time.time()
    try:
        result = service.ingest_upload(file.filename or "", file.file.read(), replace=replace)
    except Exception as e:
        logger.exception("Upload of %s failed", file.filename)
        raise _http_error(e)
    took_ms = int((time.time() - t0) * 1000)
    return UploadResponse(
        message=f"{result.document_id} uploaded & indexed successfully.",
        chunks=result.chunk_count,
        took_ms=took_ms,
    )


@app.post("/index", response_model=IndexResponse)
def index(req: IndexRequest, service: DocumentSearchService = Depends(get_service)) -> IndexResponse:
    """Индексирует готовый текст под заданным идентификатором документа."""
    t0 = time.time()
    try:
        result = service.index_document(req.document_id, req.text, replace=req.replace)
    except Exception as e:
        logger.exception("Indexing of %s failed", req.document_id)
        raise _http_error(e)
    took_ms = int((time.time() - t0) * 1000)
    return IndexResponse(document_id=result.document_id, chunks=result.chunk_count, took_ms=took_ms)


@app.post("/search", response_model=SearchResponse)
def search(req: SearchRequest, service: DocumentSearchService = Depends(get_service)) -> SearchResponse:
    """Ищет по всем документам и отвечает на вопрос с указанием источников."""
    t0 = time.time()
    try:
        answer = service.query(req.query, req.top_k)
    except Exception as e:
        logger.exception("Search failed")
        raise _http_error(e)
    took_ms = int((time.time() - t0) * 1000)
    return SearchResponse(
        answer=answer.text,
        sources=[m.as_source() for m in answer.sources],
        took_ms=took_ms,
    )


@app.get("/files", response_model=List[str])
def files(service: DocumentSearchService = Depends(get_service)) -> List[str]:
    try:
        return service.list_documents()
    except Exception as e:
        logger.exception("Listing files failed")
        raise _http_error(e)


@app.delete("/delete/{filename}")
def delete(filename: str, service: DocumentSearchService = Depends(get_service)) -> Dict[str, str]:
    """Удаляет namespace документа и сам файл; повторное удаление - не ошибка."""
    try:
        service.delete_document(filename)
    except Exception as e:
        logger.exception("Delete of %s failed", filename)
        raise _http_error(e)
    return {"message": f"{filename} deleted successfully."}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=5000, reload=False)
