"""Application service layer for reference slots."""
from __future__ import annotations

from rewriter.core.errors import InvalidReferenceFile
from rewriter.core.validation import validate_reference_file
from rewriter.domain import ReferenceContext, ReferenceFile
from rewriter.infrastructure import InMemoryReferenceStore, ReferenceStore
from rewriter.logging import get_logger

logger = get_logger(__name__)


class ReferenceService:
    """Coordinates loading and saving of the persisted reference slots."""

    def __init__(self, store: ReferenceStore) -> None:
        self._store = store

    @staticmethod
    def _check_slot(slot: str) -> None:
        if slot not in ReferenceContext.SLOTS:
            raise InvalidReferenceFile(
                f"Invalid slot name: {slot}. Must be one of: {', '.join(ReferenceContext.SLOTS)}"
            )

    def load_references(self) -> ReferenceContext:
        return self._store.load()

    def save_reference(self, slot: str, content: str, filename: str) -> ReferenceFile:
        self._check_slot(slot)
        validate_reference_file(content, filename)
        reference = ReferenceFile(content=content, filename=filename)
        context = self._store.load().with_slot(slot, reference)
        self._store.save(context)
        logger.info("saved reference slot %s from %s (%d chars)", slot, filename, len(content))
        return reference

    def clear_reference(self, slot: str) -> None:
        self._check_slot(slot)
        context = self._store.load().with_slot(slot, None)
        self._store.save(context)
        logger.info("cleared reference slot %s", slot)


_service = ReferenceService(InMemoryReferenceStore())


def configure_reference_store(store: ReferenceStore) -> ReferenceService:
    """Install the reference store used by the process."""

    global _service
    _service = ReferenceService(store)
    return _service


def get_reference_service() -> ReferenceService:
    """Return the singleton reference service for the process."""

    return _service


def reset_reference_state() -> None:
    """Reset to an empty in-memory store (used in tests)."""

    configure_reference_store(InMemoryReferenceStore())
