#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/batch.py
"""Batch conversion of independent HTML documents.

Documents are converted one after another in chunks. Every document gets
its own walk, so nothing carries over from one document to the next, and a
failing document is reported in its ``BatchItem`` without stopping the
batch. The async variant yields to the event loop between chunks.

Examples
--------
    >>> for item in convert_batch(["<p>One</p>", "<p>Two</p>"]):
    ...     print(item.index, item.result.markdown)
    0 One
    1 Two

"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Iterable, Iterator, Optional, Sequence

from mail2md.constants import DEFAULT_BATCH_CHUNK_SIZE
from mail2md.converter import ConversionResult, HTMLToMarkdownExtractor
from mail2md.exceptions import Mail2MdError
from mail2md.options import ConversionOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchItem:
    """Outcome of converting one document of a batch."""

    index: int
    result: Optional[ConversionResult] = None
    error: Optional[Mail2MdError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _chunks(inputs: Sequence[str], chunk_size: int) -> Iterator[tuple[int, Sequence[str]]]:
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    for start in range(0, len(inputs), chunk_size):
        yield start, inputs[start : start + chunk_size]


def _convert_one(extractor: HTMLToMarkdownExtractor, index: int, html: str) -> BatchItem:
    try:
        return BatchItem(index=index, result=extractor.convert(html))
    except Mail2MdError as e:
        logger.warning(f"Batch item {index} failed: {e}")
        return BatchItem(index=index, error=e)


def convert_batch(
    inputs: Iterable[str],
    options: Optional[ConversionOptions] = None,
    chunk_size: int = DEFAULT_BATCH_CHUNK_SIZE,
) -> Iterator[BatchItem]:
    """Convert documents in chunks, yielding one ``BatchItem`` per input in order.

    Parameters
    ----------
    inputs : iterable of str
        HTML documents
    options : ConversionOptions, optional
        Options shared by every conversion
    chunk_size : int, default 10
        Number of documents converted per chunk

    Yields
    ------
    BatchItem

    """
    documents = list(inputs)
    extractor = HTMLToMarkdownExtractor(options)
    for start, chunk in _chunks(documents, chunk_size):
        logger.debug("Converting batch chunk %d-%d", start, start + len(chunk) - 1)
        for offset, html in enumerate(chunk):
            yield _convert_one(extractor, start + offset, html)


async def convert_batch_async(
    inputs: Iterable[str],
    options: Optional[ConversionOptions] = None,
    chunk_size: int = DEFAULT_BATCH_CHUNK_SIZE,
) -> AsyncIterator[BatchItem]:
    """Async generator variant of ``convert_batch``.

    Each chunk is converted synchronously; control returns to the event loop
    between chunks.
    """
    documents = list(inputs)
    extractor = HTMLToMarkdownExtractor(options)
    for start, chunk in _chunks(documents, chunk_size):
        for offset, html in enumerate(chunk):
            yield _convert_one(extractor, start + offset, html)
        await asyncio.sleep(0)
