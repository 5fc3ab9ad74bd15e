"""Infrastructure layer for reference slot persistence."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Protocol

import httpx

from rewriter.core.errors import StorageError
from rewriter.domain import ReferenceContext
from rewriter.logging import get_logger

logger = get_logger(__name__)

STORAGE_FILENAME = "references.json"
STORAGE_KEY = "reference-slots"


class ReferenceStore(Protocol):
    """Persistence contract for the reference slots."""

    def load(self) -> ReferenceContext: ...

    def save(self, context: ReferenceContext) -> None: ...

    def close(self) -> None: ...

class InMemoryReferenceStore:
    """Simple in-memory store for fast iteration and tests."""

    def __init__(self, context: ReferenceContext | None = None) -> None:
        self._data: dict[str, Any] = context.to_dict() if context else {}

    def load(self) -> ReferenceContext:
        return ReferenceContext.from_dict(self._data)

    def save(self, context: ReferenceContext) -> None:
        self._data = context.to_dict()

    def close(self) -> None:
        pass


class FileReferenceStore:
    """Stores all slots as one JSON document on the local filesystem."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ReferenceContext:
        if not self._path.exists():
            return ReferenceContext()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            # An unreadable file is treated as empty slots, matching a first run.
            logger.warning("ignoring unreadable reference file %s: %s", self._path, exc)
            return ReferenceContext()
        if not isinstance(data, dict):
            return ReferenceContext()
        return ReferenceContext.from_dict(data)

    def save(self, context: ReferenceContext) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(context.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as exc:
            raise StorageError(f"Failed to save reference file: {exc}") from exc

    def close(self) -> None:
        pass


class KeyValueReferenceStore:
    """Stores all slots under one key of a Redis REST endpoint (Upstash / Vercel KV protocol)."""

    def __init__(
        self,
        url: str,
        token: str,
        *,
        key: str = STORAGE_KEY,
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        if not url.startswith(("http://", "https://")):
            raise ValueError("url must include scheme and host")
        self._url = url.rstrip("/")
        self._token = token
        self._key = key
        self._client = http_client or httpx.Client(timeout=timeout)
        self._owns_client = http_client is None

    def _command(self, *args: str) -> Any:
        try:
            response = self._client.post(
                self._url,
                headers={"Authorization": f"Bearer {self._token}"},
                json=list(args),
            )
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise StorageError(f"Key-value store request failed: {exc}") from exc
        if isinstance(body, dict) and body.get("error"):
            raise StorageError(f"Key-value store error: {body['error']}")
        return body.get("result") if isinstance(body, dict) else None

    def load(self) -> ReferenceContext:
        raw = self._command("GET", self._key)
        if not raw:
            return ReferenceContext()
        try:
            data = json.loads(raw) if isinstance(raw, str) else raw
        except json.JSONDecodeError as exc:
            raise StorageError(f"Stored reference slots are not valid JSON: {exc}") from exc
        return ReferenceContext.from_dict(data if isinstance(data, dict) else None)

    def save(self, context: ReferenceContext) -> None:
        self._command("SET", self._key, json.dumps(context.to_dict(), ensure_ascii=False))

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


def _references_root() -> Path:
    env_root = os.getenv("REFERENCES_ROOT")
    if env_root:
        return Path(env_root).expanduser().resolve()
    return Path(__file__).resolve().parents[2] / "data"


def build_reference_store() -> ReferenceStore:
    """Select the store from ``REFERENCE_STORE`` or the presence of KV credentials."""

    kv_url = os.getenv("KV_REST_API_URL")
    kv_token = os.getenv("KV_REST_API_TOKEN")
    backend = (os.getenv("REFERENCE_STORE") or ("kv" if kv_url and kv_token else "file")).strip().lower()

    if backend == "kv":
        if not kv_url or not kv_token:
            raise StorageError("REFERENCE_STORE=kv requires KV_REST_API_URL and KV_REST_API_TOKEN")
        logger.info("using key-value reference store at %s", kv_url)
        return KeyValueReferenceStore(kv_url, kv_token)
    if backend == "memory":
        return InMemoryReferenceStore()
    if backend != "file":
        raise StorageError(f"Unknown REFERENCE_STORE: {backend}")

    path = _references_root() / STORAGE_FILENAME
    logger.info("using file reference store at %s", path)
    return FileReferenceStore(path)
