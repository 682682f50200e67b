#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import logging
from typing import Any, Dict, List, Optional

from llama_index.core.llms import (
    CompletionResponse,
    CompletionResponseGen,
    CustomLLM,
    LLMMetadata,
)
from openai import OpenAI
from pydantic import PrivateAttr

from .config import LLMConfig
from .errors import GenerationUnavailable

logger = logging.getLogger(__name__)


class OpenAIChatLLM(CustomLLM):
    """Адаптер LlamaIndex CustomLLM для OpenAI-совместимого Chat Completions API.

    Оборачивает клиента OpenAI, чтобы использовать его внутри LlamaIndex
    как обычную LLM: поддерживает complete и stream_complete. Системный промпт
    и температуру можно переопределить на один вызов через kwargs.
    """

    _client: Any = PrivateAttr()
    _model: str = PrivateAttr()
    _temperature: float = PrivateAttr()
    _top_p: float = PrivateAttr()
    _max_tokens: int = PrivateAttr()
    _system_prompt: str = PrivateAttr()

    def __init__(
        self,
        api_key: str,
        model_name: str,
        base_url: Optional[str] = None,
        temperature: float = 0.03,
        top_p: float = 0.9,
        max_tokens: int = 800,
        system_prompt: str = LLMConfig.system_prompt,
        client: Optional[Any] = None,
    ) -> None:
        super().__init__()
        self._client = client or OpenAI(base_url=base_url, api_key=api_key)
        self._model = model_name
        self._temperature = float(temperature)
        self._top_p = float(top_p)
        self._max_tokens = int(max_tokens)
        self._system_prompt = system_prompt

    @classmethod
    def from_config(cls, cfg: LLMConfig) -> "OpenAIChatLLM":
        return cls(
            api_key=cfg.api_key,
            model_name=cfg.model_name,
            base_url=cfg.base_url,
            temperature=cfg.temperature,
            top_p=cfg.top_p,
            max_tokens=cfg.max_tokens,
            system_prompt=cfg.system_prompt,
        )

    @property
    def metadata(self) -> LLMMetadata:
        return LLMMetadata(
            model_name=f"openai-compat::{self._model}",
            num_output=self._max_tokens,
        )

    def _make_messages(self, user_prompt: str, system_prompt: Optional[str] = None) -> List[Dict[str, str]]:
        """Формирует список сообщений (system + user) для Chat API."""
        return [
            {"role": "system", "content": system_prompt or self._system_prompt},
            {"role": "user", "content": user_prompt},
        ]

    def _request_args(self, prompt: str, **kwargs: Any) -> Dict[str, Any]:
        temperature = kwargs.get("temperature")
        return {
            "model": self._model,
            "messages": self._make_messages(prompt, kwargs.get("system_prompt")),
            "temperature": self._temperature if temperature is None else float(temperature),
            "top_p": self._top_p,
            "max_tokens": self._max_tokens,
        }

    def complete(self, prompt: str, formatted: bool = False, **kwargs: Any) -> CompletionResponse:
        """Синхронное получение единого текста ответа для переданного промпта."""
        resp = self._client.chat.completions.create(**self._request_args(prompt, **kwargs))
        text = (resp.choices[0].message.content or "").strip()
        return CompletionResponse(text=text)

    def stream_complete(self, prompt: str, formatted: bool = False, **kwargs: Any) -> CompletionResponseGen:
        """Потоковая генерация: возвращает нарастающий ответ частями."""
        stream = self._client.chat.completions.create(stream=True, **self._request_args(prompt, **kwargs))

        buffer = []
        for event in stream:
            if not event.choices:
                continue
            delta = event.choices[0].delta.content or ""
            if delta:
                buffer.append(delta)
                yield CompletionResponse(text="".join(buffer), delta=delta)


class GenerationGateway:
    """Однократный вызов LLM для ответа по контексту, без повторов."""

    def __init__(self, llm: CustomLLM) -> None:
        self._llm = llm

    def generate(self, system_instruction: str, user_prompt: str, temperature: float) -> str:
        try:
            resp = self._llm.complete(user_prompt, system_prompt=system_instruction, temperature=temperature)
        except Exception as exc:
            raise GenerationUnavailable(f"Generation request failed: {exc}") from exc
        logger.debug("Generated %d chars", len(resp.text or ""))
        return (resp.text or "").strip()
