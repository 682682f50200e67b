from doc_search.config import AppConfig


def test_defaults(monkeypatch) -> None:
    for name in ("OPENAI_API_KEY", "DOC_SEARCH_WEAVIATE_URL", "DOC_SEARCH_TOP_K", "DOC_SEARCH_MAX_CONTEXT_CHARS"):
        monkeypatch.delenv(name, raising=False)

    cfg = AppConfig.from_env()

    assert cfg.indexing.max_chunk_chars == 400
    assert cfg.retrieval.top_k_per_namespace == 3
    assert cfg.vector_store.use_embedded is True
    assert cfg.llm.temperature == 0.03


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("DOC_SEARCH_WEAVIATE_URL", "http://weaviate:8080")
    monkeypatch.setenv("DOC_SEARCH_TOP_K", "5")
    monkeypatch.setenv("DOC_SEARCH_MAX_CONTEXT_CHARS", "none")
    monkeypatch.setenv("DOC_SEARCH_MIN_SCORE", "0.2")
    monkeypatch.setenv("DOC_SEARCH_EMBEDDING_PROVIDER", "openai")

    cfg = AppConfig.from_env()

    assert cfg.llm.api_key == "sk-test"
    assert cfg.embedding.api_key == "sk-test"
    assert cfg.embedding.provider == "openai"
    assert cfg.vector_store.use_embedded is False
    assert cfg.vector_store.weaviate_url == "http://weaviate:8080"
    assert cfg.retrieval.top_k_per_namespace == 5
    assert cfg.retrieval.max_context_chars is None
    assert cfg.retrieval.min_score == 0.2
