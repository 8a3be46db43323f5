"""
Client-side upload selection: which files the customer has queued, how many
pages they add up to, and which page range ends up on the order.

Page counts here are best-effort. PDFs are parsed for their real page count;
a PDF that fails to parse gets a random fallback count so the order flow
never blocks on a parse error. Word documents are estimated from their byte
size. The random source is explicit so the fallback can be seeded.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Set

import pypdfium2 as pdfium

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
ACCEPTED_MIME_TYPES = (
    PDF_MIME_TYPE,
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)

# Rough estimate used for Word documents
BYTES_PER_PAGE = 50_000

# Fallback range for PDFs that cannot be parsed (inclusive)
FALLBACK_MIN_PAGES = 1
FALLBACK_MAX_PAGES = 20

ALL_PAGES = "all"


@dataclass
class LocalDocument:
    """A file picked by the customer, before it is uploaded."""

    name: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


def is_valid_file_type(document: LocalDocument) -> bool:
    return document.content_type in ACCEPTED_MIME_TYPES


def count_pdf_pages(data: bytes) -> int:
    pdf = pdfium.PdfDocument(data)
    try:
        return len(pdf)
    finally:
        pdf.close()


def default_page_range(total_pages: int) -> str:
    return f"1-{total_pages}" if total_pages > 0 else ALL_PAGES


class PageEstimator:
    """
    Per-file page counts.

    Args:
        rng: Random source for the unparseable-PDF fallback; pass a seeded
            ``random.Random`` for reproducible results
        pdf_page_counter: Callable returning the page count of PDF bytes
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        pdf_page_counter: Callable[[bytes], int] = count_pdf_pages,
    ) -> None:
        self.rng = rng or random.Random()
        self._count_pdf_pages = pdf_page_counter

    def estimate(self, document: LocalDocument) -> int:
        if document.content_type == PDF_MIME_TYPE:
            try:
                pages = self._count_pdf_pages(document.data)
                logger.debug(f"PDF {document.name} has {pages} pages")
                return pages
            except Exception as exc:  # noqa: BLE001
                pages = self.rng.randint(FALLBACK_MIN_PAGES, FALLBACK_MAX_PAGES)
                logger.warning(f"Error reading PDF {document.name} ({exc}); estimated {pages} pages")
                return pages

        pages = max(1, document.size // BYTES_PER_PAGE)
        logger.debug(f"Estimated {pages} pages for {document.name}")
        return pages

    def total(self, documents: Iterable[LocalDocument]) -> int:
        return sum(self.estimate(document) for document in documents)


class UploadSelection:
    """
    The ordered list of queued files plus the derived page count and range.

    ``page_count`` and ``page_range`` are re-derived after every add or
    remove. Toggling individual pages overrides ``page_range`` with the
    selected pages; the selection itself survives later adds and removes,
    it only takes effect again on the next toggle.
    """

    def __init__(self, estimator: Optional[PageEstimator] = None) -> None:
        self.estimator = estimator or PageEstimator()
        self.files: List[LocalDocument] = []
        self.page_count = 0
        self.page_range = ALL_PAGES
        self.selected_pages: Set[int] = set()

    def add_files(self, documents: Iterable[LocalDocument]) -> List[LocalDocument]:
        """
        Queue the accepted documents and recompute totals.

        Returns:
            The documents that were rejected because of their MIME type
        """
        accepted: List[LocalDocument] = []
        rejected: List[LocalDocument] = []
        for document in documents:
            if is_valid_file_type(document):
                accepted.append(document)
            else:
                logger.warning(
                    f"{document.name} is not a valid file type. Only PDF and Word documents are allowed."
                )
                rejected.append(document)

        if accepted:
            self.files.extend(accepted)
            self._recalculate()
            logger.info(f"{len(accepted)} file(s) added")
        return rejected

    def remove_file(self, index: int) -> LocalDocument:
        removed = self.files.pop(index)
        if self.files:
            self._recalculate()
        else:
            self.page_count = 0
            self.page_range = ALL_PAGES
        logger.info(f"File removed: {removed.name}")
        return removed

    def toggle_page(self, page_number: int) -> str:
        """Select or deselect a 1-based page and return the resulting range string."""
        if page_number < 1:
            raise ValueError(f"Page numbers start at 1, got {page_number}")
        if page_number in self.selected_pages:
            self.selected_pages.discard(page_number)
        else:
            self.selected_pages.add(page_number)

        if self.selected_pages:
            self.page_range = ",".join(str(page) for page in sorted(self.selected_pages))
        else:
            self.page_range = ALL_PAGES
        return self.page_range

    def _recalculate(self) -> None:
        self.page_count = self.estimator.total(self.files)
        self.page_range = default_page_range(self.page_count)
