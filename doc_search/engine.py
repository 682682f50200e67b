#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import logging
from typing import List, Optional, Sequence

from llama_index.core import PromptTemplate

from .config import LLMConfig
from .llm import GenerationGateway
from .models import Answer, Match

logger = logging.getLogger(__name__)

NOT_FOUND_ANSWER = "I could not find that information in your documents."
CONTEXT_SEPARATOR = "\n\n"

QA_PROMPT = PromptTemplate("Question: {query_str}\n\nContext:\n{context_str}")


def select_context(matches: Sequence[Match], max_chars: Optional[int]) -> List[Match]:
    """Отбирает совпадения в контекст с учётом лимита символов.

    Кандидаты рассматриваются по возрастанию ранга внутри своего документа
    (лучшие чанки каждого документа - первыми), при равном ранге - в порядке
    пула. Первый кандидат берётся всегда, даже если сам длиннее лимита.
    Результат возвращается в исходном порядке пула.
    """
    if max_chars is None:
        return list(matches)

    order = sorted(range(len(matches)), key=lambda i: (matches[i].rank, i))
    admitted = set()
    used = 0
    for i in order:
        cost = len(matches[i].text) + (len(CONTEXT_SEPARATOR) if admitted else 0)
        if admitted and used + cost > max_chars:
            continue
        admitted.add(i)
        used += cost
    return [m for i, m in enumerate(matches) if i in admitted]


class AnswerSynthesizer:
    """Синтез ответа по найденным фрагментам.

    - пустой пул: фиксированный ответ «не найдено» без вызова LLM
    - иначе: контекст из текстов чанков через пустую строку, строгий промпт,
      один вызов LLM с низкой температурой, без повторов
    """

    def __init__(
        self,
        generator: GenerationGateway,
        system_instruction: str = LLMConfig.system_prompt,
        temperature: float = LLMConfig.temperature,
        max_context_chars: Optional[int] = 12000,
    ) -> None:
        self._generator = generator
        self._system_instruction = system_instruction
        self._temperature = temperature
        self._max_context_chars = max_context_chars

    def build_prompt(self, query: str, matches: Sequence[Match]) -> str:
        context = CONTEXT_SEPARATOR.join(m.text for m in matches)
        return QA_PROMPT.format(query_str=query, context_str=context)

    def synthesize(self, query: str, matches: Sequence[Match]) -> Answer:
        if not matches:
            return Answer(text=NOT_FOUND_ANSWER, sources=[])

        selected = select_context(matches, self._max_context_chars)
        if len(selected) < len(matches):
            logger.info("Context capped at %s chars: %d of %d matches used",
                        self._max_context_chars, len(selected), len(matches))

        text = self._generator.generate(
            self._system_instruction,
            self.build_prompt(query, selected),
            self._temperature,
        )
        return Answer(text=text.strip(), sources=selected)
