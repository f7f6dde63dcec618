"""
Document references and document loading.

A DocumentReference is the stable handle the indexes store in their postings.
It remembers where the document lives (a file, or text held in memory) and the
cached vector length used for cosine normalization. Document text is never
kept on the reference; `load_document` re-reads it on demand so that feedback
vectors are derived with the index's own tokenizer settings.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from pathlib import Path
from typing import Any

from ranking_proximity.config import DOC_TYPE_TEXT, check_doc_type
from ranking_proximity.errors import DocumentLoadError
from ranking_proximity.tokenizer import Tokenizer
from ranking_proximity.vectors import TermVector


class DocumentReference:
    """
    Handle to one corpus document.

    Two references are equal iff they denote the same document: the same
    resolved file path, or for in-memory documents the same name.
    Indexes never mutate the references they are given: each index stores
    its own copy, so doc_id and length below belong to that index alone.

    Attributes:
        name: Display name (file name for file-backed documents).
        path: File holding the document, if file-backed.
        doc_type: Document type of the index that created the reference.
        stem: Stemming flag of the index that created the reference.
        doc_id: Insertion order within the owning index (-1 until indexed).
        length: Cached vector length, set once when the index is finalized.
    """

    __slots__ = ("name", "path", "doc_type", "stem", "doc_id", "length", "_text", "_key")

    def __init__(
        self,
        name: str,
        path: str | Path | None = None,
        text: str | None = None,
        doc_type: str = DOC_TYPE_TEXT,
        stem: bool = False,
    ):
        if path is None and text is None:
            raise ValueError("A document reference needs a path or in-memory text.")
        self.name = name
        self.path = Path(path) if path is not None else None
        self.doc_type = check_doc_type(doc_type)
        self.stem = stem
        self.doc_id = -1
        self.length = 0.0
        self._text = text
        self._key = str(self.path.resolve()) if self.path is not None else f"mem:{name}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DocumentReference):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __repr__(self) -> str:
        return f"DocumentReference({self.name!r})"

    def __str__(self) -> str:
        return self.name

    def read_text(self) -> str:
        """Raw document text (markup included for HTML documents)."""
        if self.path is None:
            return self._text or ""
        try:
            return self.path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise DocumentLoadError(f"Could not load file: {self.path}") from exc

    def copy(self) -> DocumentReference:
        """A new, unindexed reference to the same document."""
        return DocumentReference(self.name, self.path, self._text, self.doc_type, self.stem)

    def get_document(self, doc_type: str | None = None, stem: bool | None = None) -> Document:
        """Load the document, defaulting to the settings it was indexed with."""
        return load_document(
            self,
            self.doc_type if doc_type is None else doc_type,
            self.stem if stem is None else stem,
        )


class Document:
    """A loaded document together with the tokenizer settings used to read it."""

    def __init__(self, reference: DocumentReference, text: str, tokenizer: Tokenizer):
        self.reference = reference
        self.text = text
        self.tokenizer = tokenizer

    def term_vector(self) -> TermVector:
        """Term-frequency vector with stopwords removed."""
        return self.tokenizer.term_vector(self.text)

    def tokens(self) -> list[str]:
        return self.tokenizer.tokens(self.text)

    def positional_token_stream(self) -> Iterator[str]:
        """Stopword-retaining token stream; a fresh iterator on every call."""
        return self.tokenizer.positional().iter_tokens(self.text)


def load_document(reference: DocumentReference, doc_type: str, stem: bool) -> Document:
    return Document(reference, reference.read_text(), Tokenizer(doc_type, stem))


def references_from_directory(
    directory: str | Path,
    doc_type: str = DOC_TYPE_TEXT,
    stem: bool = False,
) -> list[DocumentReference]:
    """References for every regular file in `directory`, ordered by file name."""
    directory = Path(directory)
    if not directory.is_dir():
        raise DocumentLoadError(f"Not a directory: {directory}")
    files = sorted(p for p in directory.iterdir() if p.is_file())
    return [DocumentReference(p.name, path=p, doc_type=doc_type, stem=stem) for p in files]


def references_from_texts(
    texts: Mapping[str, str] | Sequence[str],
    doc_type: str = DOC_TYPE_TEXT,
    stem: bool = False,
) -> list[DocumentReference]:
    """In-memory references; a plain sequence gets names doc0, doc1, ..."""
    if isinstance(texts, Mapping):
        pairs = list(texts.items())
    else:
        pairs = [(f"doc{i}", text) for i, text in enumerate(texts)]
    return [DocumentReference(name, text=text, doc_type=doc_type, stem=stem) for name, text in pairs]


def references_from_records(
    records: Iterable[Mapping[str, Any]],
    id_field: str = "id",
    text_field: str = "content",
    doc_type: str = DOC_TYPE_TEXT,
    stem: bool = False,
) -> list[DocumentReference]:
    """References for dataset-style records such as rows of a HuggingFace split."""
    return [
        DocumentReference(str(record[id_field]), text=record[text_field], doc_type=doc_type, stem=stem)
        for record in records
    ]


__all__ = [
    "DocumentReference",
    "Document",
    "load_document",
    "references_from_directory",
    "references_from_texts",
    "references_from_records",
]
