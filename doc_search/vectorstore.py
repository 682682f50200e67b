#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Векторное хранилище с изоляцией документов по namespace.

- VectorStore: минимальный контракт (upsert / query / list / delete)
- make_weaviate_client: фабрика клиента Weaviate (embedded/remote)
- WeaviateNamespaceStore: реализация на коллекции Weaviate с multi-tenancy,
  где каждый namespace (документ) - отдельный tenant
"""

from __future__ import annotations

import base64
import hashlib
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Set
from urllib.parse import urlparse

import weaviate
from weaviate.classes.config import Configure, DataType, Property
from weaviate.classes.data import DataObject
from weaviate.classes.init import Auth
from weaviate.classes.query import MetadataQuery
from weaviate.exceptions import WeaviateBaseError
from weaviate.util import generate_uuid5

from .config import VectorStoreConfig
from .errors import StoreQueryFailed, StoreWriteFailed
from .models import StoredMatch

logger = logging.getLogger(__name__)

METADATA_FIELDS = ("file", "chunkIndex", "lineStart", "lineEnd", "text")

# Ограничение Weaviate на имя tenant: [A-Za-z0-9_-]{1,64}
_MAX_TENANT_LEN = 64
_ENCODED_PREFIX = "ns_"
_HASHED_PREFIX = "nh_"


class VectorStore(ABC):
    """Хранилище векторов, все операции которого ограничены одним namespace,
    кроме перечисления namespace."""

    @abstractmethod
    def upsert(self, namespace: str, record_id: str, vector: Sequence[float], metadata: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    def query(
        self, namespace: str, vector: Sequence[float], top_k: int, include_metadata: bool = True
    ) -> List[StoredMatch]:
        ...

    @abstractmethod
    def list_namespaces(self) -> Set[str]:
        ...

    @abstractmethod
    def delete_namespace(self, namespace: str) -> None:
        """Удаляет все записи namespace. Неизвестный namespace - не ошибка."""

    def close(self) -> None:
        pass


def make_weaviate_client(cfg: VectorStoreConfig) -> weaviate.WeaviateClient:
    """Создаёт подключённый клиент Weaviate в зависимости от конфигурации.

    - embedded: локальный встроенный сервер Weaviate (без внешних сервисов)
    - remote: подключение к удалённому Weaviate (Docker/K8s) по URL, опционально с API‑ключом
    """
    if cfg.use_embedded:
        return weaviate.connect_to_embedded()
    if not cfg.weaviate_url:
        raise RuntimeError("Remote Weaviate requested but no URL configured.")

    url = urlparse(cfg.weaviate_url)
    secure = url.scheme == "https"
    auth = Auth.api_key(cfg.weaviate_api_key) if cfg.weaviate_api_key else None
    return weaviate.connect_to_custom(
        http_host=url.hostname,
        http_port=url.port or (443 if secure else 8080),
        http_secure=secure,
        grpc_host=url.hostname,
        grpc_port=443 if secure else 50051,
        grpc_secure=secure,
        auth_credentials=auth,
    )


def namespace_to_tenant(namespace: str) -> str:
    """Детерминированно отображает имя документа в допустимое имя tenant.

    Короткие имена кодируются обратимо (urlsafe base64), длинные - хешем;
    для хешированных tenant исходное имя читается из свойства "file".
    """
    encoded = base64.urlsafe_b64encode(namespace.encode("utf-8")).decode("ascii").rstrip("=")
    tenant = _ENCODED_PREFIX + encoded
    if len(tenant) <= _MAX_TENANT_LEN:
        return tenant
    return _HASHED_PREFIX + hashlib.sha256(namespace.encode("utf-8")).hexdigest()[:48]


def tenant_to_namespace(tenant: str) -> Optional[str]:
    if not tenant.startswith(_ENCODED_PREFIX):
        return None
    encoded = tenant[len(_ENCODED_PREFIX):]
    padded = encoded + "=" * (-len(encoded) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")


class WeaviateNamespaceStore(VectorStore):
    """Namespace-хранилище на одной коллекции Weaviate с multi-tenancy.

    Векторы передаются извне (vectorizer отключён). Идентификатор записи -
    UUIDv5 от строкового id, поэтому повторный upsert перезаписывает объект.
    """

    def __init__(self, client: weaviate.WeaviateClient, collection_name: str) -> None:
        self._client = client
        self._collection_name = collection_name
        self._collection = client.collections.get(collection_name)

    def ensure_collection(self) -> None:
        """Создаёт коллекцию с multi-tenancy, если её ещё нет."""
        try:
            if self._client.collections.exists(self._collection_name):
                return
            self._client.collections.create(
                self._collection_name,
                multi_tenancy_config=Configure.multi_tenancy(enabled=True, auto_tenant_creation=True),
                vector_config=Configure.Vectors.self_provided(),
                properties=[
                    Property(name="recordId", data_type=DataType.TEXT),
                    Property(name="file", data_type=DataType.TEXT),
                    Property(name="chunkIndex", data_type=DataType.INT),
                    Property(name="lineStart", data_type=DataType.INT),
                    Property(name="lineEnd", data_type=DataType.INT),
                    Property(name="text", data_type=DataType.TEXT),
                ],
            )
        except WeaviateBaseError as exc:
            raise StoreWriteFailed(f"Cannot create collection {self._collection_name}: {exc}") from exc
        logger.info("Created Weaviate collection %s", self._collection_name)

    def upsert(self, namespace: str, record_id: str, vector: Sequence[float], metadata: Dict[str, Any]) -> None:
        """Пишет запись через batch-вставку: объект с тем же UUID перезаписывается.

        Отдельной проверки существования нет, поэтому параллельные писатели
        одного id не конфликтуют (побеждает последний). Tenant создаётся
        самой коллекцией (auto_tenant_creation).
        """
        tenant = namespace_to_tenant(namespace)
        properties = {k: metadata.get(k) for k in METADATA_FIELDS}
        properties["recordId"] = record_id
        obj = DataObject(properties=properties, uuid=generate_uuid5(record_id), vector=list(vector))
        try:
            result = self._collection.with_tenant(tenant).data.insert_many([obj])
        except WeaviateBaseError as exc:
            raise StoreWriteFailed(f"Upsert of {record_id} failed: {exc}", document_id=namespace) from exc
        if result.has_errors:
            reason = "; ".join(err.message for err in result.errors.values())
            raise StoreWriteFailed(f"Upsert of {record_id} failed: {reason}", document_id=namespace)

    def query(
        self, namespace: str, vector: Sequence[float], top_k: int, include_metadata: bool = True
    ) -> List[StoredMatch]:
        tenant = namespace_to_tenant(namespace)
        try:
            resp = self._collection.with_tenant(tenant).query.near_vector(
                near_vector=list(vector),
                limit=top_k,
                return_metadata=MetadataQuery(distance=True),
                return_properties=["recordId", *METADATA_FIELDS] if include_metadata else ["recordId"],
            )
        except WeaviateBaseError as exc:
            raise StoreQueryFailed(f"Query of namespace {namespace} failed: {exc}", document_id=namespace) from exc

        matches = []
        for obj in resp.objects:
            props = dict(obj.properties or {})
            distance = obj.metadata.distance if obj.metadata else None
            matches.append(StoredMatch(
                id=props.pop("recordId", None) or str(obj.uuid),
                score=None if distance is None else 1.0 - distance,
                metadata=props if include_metadata else {},
            ))
        return matches

    def list_namespaces(self) -> Set[str]:
        namespaces = set()
        try:
            for name in self._collection.tenants.get():
                namespace = tenant_to_namespace(name)
                if namespace is None:
                    namespace = self._read_namespace(name)
                if namespace is not None:
                    namespaces.add(namespace)
        except WeaviateBaseError as exc:
            raise StoreQueryFailed(f"Cannot list namespaces: {exc}") from exc
        return namespaces

    def _read_namespace(self, tenant: str) -> Optional[str]:
        """Имя документа для хешированного tenant берётся из любого его объекта."""
        resp = self._collection.with_tenant(tenant).query.fetch_objects(limit=1, return_properties=["file"])
        if not resp.objects:
            return None
        return resp.objects[0].properties.get("file")

    def delete_namespace(self, namespace: str) -> None:
        tenant = namespace_to_tenant(namespace)
        try:
            if self._collection.tenants.exists(tenant):
                self._collection.tenants.remove([tenant])
            else:
                logger.debug("Namespace %s not found, nothing to delete", namespace)
        except WeaviateBaseError as exc:
            raise StoreWriteFailed(f"Delete of namespace {namespace} failed: {exc}", document_id=namespace) from exc

    def close(self) -> None:
        self._client.close()
