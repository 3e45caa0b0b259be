"""Unit tests for the document status transition table."""

from __future__ import annotations

import pytest

from knowme.models.document import (
    CONTENT_PREVIEW_CHARS,
    DOCUMENT_TRANSITIONS,
    Document,
    DocumentEvent,
    DocumentKind,
    DocumentStatus,
    InvalidTransitionError,
    transition,
)


def _doc(status: DocumentStatus = DocumentStatus.UPLOADING, **fields) -> Document:  # noqa: ANN003
    return Document(space_id="space-1", filename="cv.pdf", kind=DocumentKind.PDF, status=status, **fields)


class TestAllowedTransitions:
    @pytest.mark.parametrize(("start", "event"), list(DOCUMENT_TRANSITIONS))
    def test_every_declared_transition_applies(self, start: DocumentStatus, event: DocumentEvent) -> None:
        moved = transition(_doc(start), event)
        assert moved.status is DOCUMENT_TRANSITIONS[(start, event)]

    @pytest.mark.parametrize(
        ("start", "event"),
        [
            (DocumentStatus.UPLOADING, DocumentEvent.SUCCEEDED),
            (DocumentStatus.UPLOADING, DocumentEvent.RERUN),
            (DocumentStatus.READY, DocumentEvent.SUCCEEDED),
            (DocumentStatus.FAILED, DocumentEvent.STORED),
            (DocumentStatus.INDEXING, DocumentEvent.STORED),
        ],
    )
    def test_undeclared_transition_raises(self, start: DocumentStatus, event: DocumentEvent) -> None:
        with pytest.raises(InvalidTransitionError):
            transition(_doc(start), event)

    def test_original_is_not_mutated(self) -> None:
        doc = _doc()
        transition(doc, DocumentEvent.STORED)
        assert doc.status is DocumentStatus.UPLOADING


class TestFieldRules:
    def test_ready_never_carries_an_error(self) -> None:
        doc = _doc(DocumentStatus.INDEXING, error_message="old")
        ready = transition(doc, DocumentEvent.SUCCEEDED, index_file_id="file_1", error_message="x")
        assert ready.error_message is None
        assert ready.index_file_id == "file_1"

    @pytest.mark.parametrize("event", [DocumentEvent.EXTRACTION_FAILED, DocumentEvent.INDEXING_FAILED])
    def test_failed_never_carries_a_file_id(self, event: DocumentEvent) -> None:
        doc = _doc(DocumentStatus.INDEXING, index_file_id="file_1")
        failed = transition(doc, event, error_message="Page not found")
        assert failed.index_file_id is None
        assert failed.error_message == "Page not found"

    def test_failed_gets_a_default_message(self) -> None:
        failed = transition(_doc(DocumentStatus.INDEXING), DocumentEvent.INDEXING_FAILED)
        assert failed.error_message

    def test_rerun_clears_prior_error(self) -> None:
        doc = _doc(DocumentStatus.FAILED, error_message="Failed to index file")
        rerun = transition(doc, DocumentEvent.RERUN)
        assert rerun.status is DocumentStatus.INDEXING
        assert rerun.error_message is None

    def test_preview_text_is_truncated(self) -> None:
        doc = _doc(DocumentStatus.INDEXING)
        ready = transition(doc, DocumentEvent.SUCCEEDED, content_text="a" * (CONTENT_PREVIEW_CHARS + 50))
        assert len(ready.content_text) == CONTENT_PREVIEW_CHARS

    def test_updated_at_moves_forward(self) -> None:
        doc = _doc()
        moved = transition(doc, DocumentEvent.STORED)
        assert moved.updated_at >= doc.updated_at
