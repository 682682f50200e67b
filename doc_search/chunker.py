#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import re
from typing import List, Tuple

from .models import ChunkRecord

LINES_PER_CHUNK = 15

# Конец предложения: ".", "?" или "!" и за ним пробельные символы.
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.?!])\s+")


def split_sentences(text: str) -> List[str]:
    parts = (s.strip() for s in _SENTENCE_BOUNDARY.split(text or ""))
    return [s for s in parts if s]


def line_range(ordinal: int) -> Tuple[int, int]:
    return ordinal * LINES_PER_CHUNK + 1, (ordinal + 1) * LINES_PER_CHUNK


def chunk_text(text: str, max_chunk_chars: int = 400) -> List[ChunkRecord]:
    """Режет текст на чанки, выровненные по границам предложений.

    Предложения жадно набираются в буфер; если следующее предложение выведет
    сумму длин предложений буфера за `max_chunk_chars`, буфер закрывается.
    Пробелы, склеивающие предложения, в лимит не входят, поэтому граница
    мягкая. Предложение длиннее лимита становится отдельным чанком и не режется.
    """
    if max_chunk_chars < 1:
        raise ValueError("max_chunk_chars must be >= 1")

    texts: List[str] = []
    buffer: List[str] = []
    buffered = 0
    for sentence in split_sentences(text):
        if buffer and buffered + len(sentence) > max_chunk_chars:
            texts.append(" ".join(buffer))
            buffer, buffered = [], 0
        buffer.append(sentence)
        buffered += len(sentence)
    if buffer:
        texts.append(" ".join(buffer))

    chunks = []
    for ordinal, chunk in enumerate(texts):
        start, end = line_range(ordinal)
        chunks.append(ChunkRecord(ordinal=ordinal, text=chunk, line_start=start, line_end=end))
    return chunks
