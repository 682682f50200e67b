"""
Тесты эндпоинтов загрузки и индексации FastAPI-приложения.

Сценарии:
- Успешная загрузка файла и индексация текста (сервис на заглушках, без Weaviate/OpenAI)
- Неподдерживаемый формат и пустой текст -> HTTP 400
- Отказ внешнего сервиса при индексации -> HTTP 502 со счётчиком чанков
- Список и удаление файлов

Запуск тестов:
  pytest -q tests/test_api_ingest.py

Ручная проверка эндпоинта (после запуска uvicorn app.main:app):
  curl -X POST http://localhost:5000/upload -F "file=@./notes.txt"
"""

import pytest
from fastapi.testclient import TestClient

from app.main import app, get_service
from doc_search.errors import EmbeddingUnavailable


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_upload_happy_path(client, store) -> None:
    resp = client.post(
        "/upload",
        files={"file": ("notes.txt", b"RAG test document one. It has two sentences.", "text/plain")},
    )

    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["success"] is True
    assert data["message"] == "notes.txt uploaded & indexed successfully."
    assert data["chunks"] == 1
    assert isinstance(data["took_ms"], int) and data["took_ms"] >= 0
    assert "notes.txt" in store.namespaces


def test_upload_unsupported_format(client) -> None:
    resp = client.post("/upload", files={"file": ("slides.pptx", b"binary", "application/octet-stream")})

    assert resp.status_code == 400
    assert resp.json()["detail"]["kind"] == "UnsupportedFormat"


def test_upload_empty_text(client) -> None:
    resp = client.post("/upload", files={"file": ("blank.txt", b"   \n", "text/plain")})

    assert resp.status_code == 400
    assert resp.json()["detail"]["kind"] == "EmptyContent"


def test_index_text(client, store) -> None:
    resp = client.post("/index", json={"document_id": "a.txt", "text": "One. Two.", "replace": True})

    assert resp.status_code == 200, resp.text
    assert resp.json()["document_id"] == "a.txt"
    assert resp.json()["chunks"] == 1


def test_index_rejects_path_like_document_id(client, store) -> None:
    for document_id in ("notes/a.txt", "notes\\a.txt"):
        resp = client.post("/index", json={"document_id": document_id, "text": "One. Two."})
        assert resp.status_code == 422, document_id
    assert store.namespaces == {}


def test_index_failure_reports_progress(client, service, monkeypatch) -> None:
    def _fail(document_id, chunks):
        raise EmbeddingUnavailable("quota exceeded", document_id=document_id, indexed_count=0)

    monkeypatch.setattr(service.indexer, "index", _fail)
    resp = client.post("/index", json={"document_id": "a.txt", "text": "One. Two."})

    assert resp.status_code == 502
    detail = resp.json()["detail"]
    assert detail["kind"] == "EmbeddingUnavailable"
    assert detail["indexed_count"] == 0


def test_files_and_delete(client, store) -> None:
    client.post("/upload", files={"file": ("a.txt", b"Alpha. Beta.", "text/plain")})
    assert client.get("/files").json() == ["a.txt"]

    resp = client.delete("/delete/a.txt")
    assert resp.status_code == 200
    assert resp.json() == {"message": "a.txt deleted successfully."}
    assert client.get("/files").json() == []
    assert "a.txt" not in store.namespaces

    assert client.delete("/delete/a.txt").status_code == 200


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}
