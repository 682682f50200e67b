"""Ядро поиска по документам (RAG).

Содержит:
- config: dataclass-конфиги для эмбеддингов, векторного хранилища, LLM, индексирования и поиска
- chunker: нарезка текста на чанки по предложениям с синтетическими номерами строк
- embeddings: шлюз эмбеддингов поверх модели llama-index
- llm: адаптер LlamaIndex CustomLLM для OpenAI‑совместимого Chat API и шлюз генерации
- vectorstore: контракт хранилища и его реализация на Weaviate (namespace = tenant)
- indexer: запись чанков документа в его namespace
- retriever: fan-out поиск по всем namespace
- engine: синтез ответа по найденному контексту
- extractors, storage: извлечение текста и хранение загруженных файлов
- service: фасад, собирающий всё вместе
"""
