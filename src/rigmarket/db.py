from __future__ import annotations

import copy
import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

from redis import Redis

from .config import Settings

logger = logging.getLogger(__name__)

COLLECTIONS = ("components", "categories", "builds", "users")


class DocumentStore:
    """
    文档存储基类 - Document Store Base Class

    以 id 为键的通用文档存储，每个集合存放 JSON 字典。只保证单文档读写的原子性，
    不提供多文档事务。
    Generic document store keyed by id; each collection holds JSON dicts.
    Single-document reads and writes are atomic, there are no multi-document
    transactions.
    """

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def all(self, collection: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def insert(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def replace(self, collection: str, document: Dict[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, collection: str, doc_id: str) -> bool:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def find(self, collection: str, **filters: Any) -> List[Dict[str, Any]]:
        """
        按字段相等过滤 - Filter by field equality

        参数 Parameters:
            collection: 集合名称 - collection name
            filters: 顶层字段等值条件，值为 None 的条件被忽略
                     Top-level equality filters; None values are ignored.
        """
        active = {k: v for k, v in filters.items() if v is not None}
        return [doc for doc in self.all(collection) if all(doc.get(k) == v for k, v in active.items())]

    def count(self, collection: str, **filters: Any) -> int:
        return len(self.find(collection, **filters))

    def is_empty(self) -> bool:
        return all(not self.all(name) for name in COLLECTIONS)


class MemoryDocumentStore(DocumentStore):
    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _bucket(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        doc = self._bucket(collection).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def all(self, collection: str) -> List[Dict[str, Any]]:
        return [copy.deepcopy(doc) for doc in self._bucket(collection).values()]

    def insert(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        bucket = self._bucket(collection)
        doc_id = document["id"]
        if doc_id in bucket:
            raise KeyError(f"duplicate id {doc_id!r} in {collection}")
        bucket[doc_id] = copy.deepcopy(document)
        return copy.deepcopy(document)

    def replace(self, collection: str, document: Dict[str, Any]) -> bool:
        bucket = self._bucket(collection)
        if document["id"] not in bucket:
            return False
        bucket[document["id"]] = copy.deepcopy(document)
        return True

    def delete(self, collection: str, doc_id: str) -> bool:
        return self._bucket(collection).pop(doc_id, None) is not None

    def clear(self) -> None:
        self._collections.clear()


class SQLiteDocumentStore(DocumentStore):
    """
    SQLite 文档存储 - SQLite Document Store

    所有集合共用一张 documents 表，正文以 JSON 文本保存。
    All collections share one ``documents`` table; bodies are JSON text.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._init_table()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_table(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    body_json TEXT NOT NULL,
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (collection, id)
                )
                """
            )
            conn.commit()

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT body_json FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            ).fetchone()
        if row is None:
            return None
        return json.loads(row[0])

    def all(self, collection: str) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT body_json FROM documents WHERE collection = ? ORDER BY rowid",
                (collection,),
            ).fetchall()
        return [json.loads(r[0]) for r in rows]

    def insert(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO documents (collection, id, body_json) VALUES (?, ?, ?)",
                    (collection, document["id"], json.dumps(document, ensure_ascii=False)),
                )
                conn.commit()
        except sqlite3.IntegrityError as exc:
            raise KeyError(f"duplicate id {document['id']!r} in {collection}") from exc
        return document

    def replace(self, collection: str, document: Dict[str, Any]) -> bool:
        with self._connect() as conn:
            cur = conn.execute(
                """
                UPDATE documents
                SET body_json = ?, updated_at = CURRENT_TIMESTAMP
                WHERE collection = ? AND id = ?
                """,
                (json.dumps(document, ensure_ascii=False), collection, document["id"]),
            )
            conn.commit()
        return cur.rowcount > 0

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            conn.commit()
        return cur.rowcount > 0

    def clear(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM documents")
            conn.commit()


class RedisDocumentStore(DocumentStore):
    """
    Redis 文档存储 - Redis Document Store

    每个集合一个 hash：``{prefix}:{collection}``，字段为文档 id。
    One hash per collection, ``{prefix}:{collection}``, keyed by document id.
    """

    def __init__(self, client: Redis, prefix: str = "rigmarket"):
        self._client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "rigmarket") -> "RedisDocumentStore":
        client = Redis.from_url(url, decode_responses=True)
        # startup connectivity check for fail-fast behavior
        client.ping()
        return cls(client, prefix=prefix)

    def _key(self, collection: str) -> str:
        return f"{self.prefix}:{collection}"

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        payload = self._client.hget(self._key(collection), doc_id)
        if not payload:
            return None
        return json.loads(payload)

    def all(self, collection: str) -> List[Dict[str, Any]]:
        payloads = self._client.hgetall(self._key(collection))
        return [json.loads(v) for v in payloads.values()]

    def insert(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        created = self._client.hsetnx(self._key(collection), document["id"], json.dumps(document, ensure_ascii=False))
        if not created:
            raise KeyError(f"duplicate id {document['id']!r} in {collection}")
        return document

    def replace(self, collection: str, document: Dict[str, Any]) -> bool:
        key = self._key(collection)
        if not self._client.hexists(key, document["id"]):
            return False
        self._client.hset(key, document["id"], json.dumps(document, ensure_ascii=False))
        return True

    def delete(self, collection: str, doc_id: str) -> bool:
        return bool(self._client.hdel(self._key(collection), doc_id))

    def clear(self) -> None:
        self._client.delete(*[self._key(name) for name in COLLECTIONS])


def open_store(settings: Settings) -> DocumentStore:
    if settings.store == "sqlite":
        logger.info("Using sqlite document store at %s", settings.sqlite_path)
        return SQLiteDocumentStore(settings.sqlite_path)
    if settings.store == "redis":
        logger.info("Using redis document store at %s", settings.redis_url)
        return RedisDocumentStore.from_url(settings.redis_url, prefix=settings.redis_prefix)
    logger.info("Using in-memory document store")
    return MemoryDocumentStore()
