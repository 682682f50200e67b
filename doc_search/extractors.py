#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Извлечение текста из загруженных файлов (PDF, TXT, HTML)."""

import logging
from pathlib import Path

import fitz  # PyMuPDF
from bs4 import BeautifulSoup

from .errors import ExtractionError, UnsupportedFormat

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".txt", ".html", ".htm")


def _extension(filename_or_ext: str) -> str:
    if filename_or_ext.startswith(".") and "." not in filename_or_ext[1:]:
        return filename_or_ext.lower()
    return Path(filename_or_ext).suffix.lower()


def _pdf_text(data: bytes) -> str:
    try:
        with fitz.open(stream=data, filetype="pdf") as doc:
            return "\n".join(page.get_text() for page in doc)
    except RuntimeError as exc:
        raise ExtractionError(f"Cannot read PDF: {exc}") from exc


def _html_text(data: bytes) -> str:
    soup = BeautifulSoup(data.decode("utf-8", errors="replace"), "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return soup.get_text(" ")


def extract_text(data: bytes, filename_or_ext: str) -> str:
    """Возвращает текст документа по расширению файла (или самому расширению).

    Неподдерживаемый формат - UnsupportedFormat; повреждённый PDF - ExtractionError.
    """
    ext = _extension(filename_or_ext)
    if ext == ".pdf":
        text = _pdf_text(data)
    elif ext == ".txt":
        text = data.decode("utf-8", errors="replace")
    elif ext in (".html", ".htm"):
        text = _html_text(data)
    else:
        raise UnsupportedFormat("Only PDF, TXT, and HTML supported.", extension=ext or None)
    logger.debug("Extracted %d chars from %s", len(text), filename_or_ext)
    return text
