from __future__ import annotations

import json
import sys
from pathlib import Path

import httpx
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from rewriter.application import ReferenceService
from rewriter.core.errors import InvalidReferenceFile, StorageError
from rewriter.domain import ReferenceContext, ReferenceFile
from rewriter.infrastructure import (
    FileReferenceStore,
    InMemoryReferenceStore,
    KeyValueReferenceStore,
    build_reference_store,
)


def _kv_handler(storage: dict[str, str], requests: list[list[str]]):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["authorization"] == "Bearer kv-token"
        command = json.loads(request.content.decode("utf-8"))
        requests.append(command)
        if command[0] == "GET":
            return httpx.Response(200, json={"result": storage.get(command[1])})
        if command[0] == "SET":
            storage[command[1]] = command[2]
            return httpx.Response(200, json={"result": "OK"})
        return httpx.Response(200, json={"error": f"unknown command {command[0]}"})

    return handler


def test_file_store_round_trip(tmp_path):
    store = FileReferenceStore(tmp_path / "data" / "references.json")
    assert store.load() == ReferenceContext()

    context = ReferenceContext(
        primary=ReferenceFile(content="# Rules ✓", filename="rules.md", saved_at="2025-01-01T00:00:00+00:00")
    )
    store.save(context)

    raw = json.loads(store.path.read_text(encoding="utf-8"))
    assert raw["primary"] == {"content": "# Rules ✓", "filename": "rules.md", "savedAt": "2025-01-01T00:00:00+00:00"}
    assert raw["guide"] is None
    assert FileReferenceStore(store.path).load() == context


def test_file_store_treats_corrupt_file_as_empty(tmp_path):
    path = tmp_path / "references.json"
    path.write_text("{not json", encoding="utf-8")
    assert FileReferenceStore(path).load() == ReferenceContext()


def test_file_store_ignores_slots_of_the_wrong_shape(tmp_path):
    path = tmp_path / "references.json"
    path.write_text(
        json.dumps({"primary": "oops", "guide": ["x"], "supplementary": {"content": "notes", "filename": "n.md"}}),
        encoding="utf-8",
    )

    context = FileReferenceStore(path).load()

    assert context.primary is None
    assert context.guide is None
    assert context.supplementary.filename == "n.md"


def test_key_value_store_close_releases_owned_client_only():
    owned = KeyValueReferenceStore("https://kv.example.com", "kv-token")
    owned.close()
    assert owned._client.is_closed

    http_client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})))
    KeyValueReferenceStore("https://kv.example.com", "kv-token", http_client=http_client).close()
    assert not http_client.is_closed
    http_client.close()


def test_key_value_store_round_trip():
    storage: dict[str, str] = {}
    requests: list[list[str]] = []
    http_client = httpx.Client(transport=httpx.MockTransport(_kv_handler(storage, requests)))
    store = KeyValueReferenceStore("https://kv.example.com", "kv-token", http_client=http_client)

    assert store.load() == ReferenceContext()

    context = ReferenceContext(guide=ReferenceFile(content="guide", filename="guide.txt", saved_at="t"))
    store.save(context)

    assert store.load() == context
    assert [command[0] for command in requests] == ["GET", "SET", "GET"]
    assert json.loads(storage["reference-slots"])["guide"]["filename"] == "guide.txt"
    http_client.close()


def test_key_value_store_surfaces_errors():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "WRONGPASS invalid token"})

    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    store = KeyValueReferenceStore("https://kv.example.com", "kv-token", http_client=http_client)
    with pytest.raises(StorageError, match="WRONGPASS"):
        store.load()

    def failing_handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    http_client = httpx.Client(transport=httpx.MockTransport(failing_handler))
    store = KeyValueReferenceStore("https://kv.example.com", "kv-token", http_client=http_client)
    with pytest.raises(StorageError):
        store.save(ReferenceContext())


def test_service_saves_and_clears_slots():
    service = ReferenceService(InMemoryReferenceStore())

    saved = service.save_reference("primary", "# Rules", "rules.md")
    service.save_reference("supplementary", "notes", "notes.txt")

    context = service.load_references()
    assert context.primary == saved
    assert saved.saved_at
    assert context.supplementary.filename == "notes.txt"
    assert context.guide is None

    service.clear_reference("primary")
    context = service.load_references()
    assert context.primary is None
    assert context.supplementary is not None


def test_service_rejects_unknown_slot_and_bad_files():
    service = ReferenceService(InMemoryReferenceStore())
    with pytest.raises(InvalidReferenceFile, match="Invalid slot name"):
        service.save_reference("rules", "# Rules", "rules.md")
    with pytest.raises(InvalidReferenceFile, match="Invalid file type"):
        service.save_reference("primary", "# Rules", "rules.docx")
    assert service.load_references() == ReferenceContext()


def test_build_reference_store_selects_backend(tmp_path, monkeypatch):
    monkeypatch.delenv("KV_REST_API_URL", raising=False)
    monkeypatch.delenv("KV_REST_API_TOKEN", raising=False)
    monkeypatch.delenv("REFERENCE_STORE", raising=False)
    monkeypatch.setenv("REFERENCES_ROOT", str(tmp_path))

    store = build_reference_store()
    assert isinstance(store, FileReferenceStore)
    assert store.path == tmp_path.resolve() / "references.json"

    monkeypatch.setenv("KV_REST_API_URL", "https://kv.example.com")
    monkeypatch.setenv("KV_REST_API_TOKEN", "kv-token")
    assert isinstance(build_reference_store(), KeyValueReferenceStore)

    monkeypatch.setenv("REFERENCE_STORE", "memory")
    assert isinstance(build_reference_store(), InMemoryReferenceStore)

    monkeypatch.setenv("REFERENCE_STORE", "kv")
    monkeypatch.delenv("KV_REST_API_TOKEN")
    with pytest.raises(StorageError):
        build_reference_store()
