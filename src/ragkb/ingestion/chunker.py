"""Paragraph-first text chunking with word-aligned overlap.

The chunker is a pure function of its inputs.  Paragraphs (blocks
separated by a blank line) are packed greedily into chunks of at most
``max_size`` characters.  When a chunk is flushed, the next one is seeded
with a word-aligned tail of the flushed chunk so that context carries
across the boundary.  A buffer that still overflows after seeding (one
paragraph larger than the limit) is re-packed sentence by sentence.

Sentence detection is plain terminal-punctuation matching, so
abbreviations ("e.g. ") and decimals followed by whitespace are treated
as sentence ends. Whitespace inside a paragraph, newlines included, is
kept as written; only the edges of each chunk are trimmed.
"""

from __future__ import annotations

import re

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200

PARAGRAPH_SEPARATOR = "\n\n"

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
# A sentence runs up to terminal punctuation followed by whitespace (kept
# with the sentence) or end of text; text after the last one is its own piece.
_SENTENCE = re.compile(r".*?[.!?]+(?:\s+|\Z)|.+", re.DOTALL)
_WORD = re.compile(r"\S+")


def chunk_text(
    text: str,
    max_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[str]:
    """Split *text* into ordered, overlapping chunks.

    Parameters
    ----------
    text:
        Raw document text.
    max_size:
        Maximum number of characters per chunk.  A single sentence longer
        than this is emitted whole rather than truncated.
    overlap:
        Character budget for the tail of the previous chunk that prefixes
        the next one.  The tail is aligned to whole words and never exceeds
        the budget.

    Returns
    -------
    list[str]
        Non-empty, trimmed chunks in source order.  Never empty for
        non-empty input; whitespace-only input yields ``[text.strip()]``.
    """
    if max_size <= 0:
        raise ValueError(f"max_size must be positive, got {max_size}")
    if overlap < 0:
        raise ValueError(f"overlap must be non-negative, got {overlap}")

    paragraphs = [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]
    chunks: list[str] = []
    buffer = ""

    for paragraph in paragraphs:
        if _fits(buffer, paragraph, PARAGRAPH_SEPARATOR, max_size):
            buffer = _join(buffer, paragraph, PARAGRAPH_SEPARATOR)
            continue

        if buffer:
            flushed = buffer.strip()
            chunks.append(flushed)
            buffer = _join(overlap_tail(flushed, overlap), paragraph, PARAGRAPH_SEPARATOR)
        else:
            buffer = paragraph

        if len(buffer) > max_size:
            buffer = _pack_sentences(buffer, max_size, chunks)

    if buffer.strip():
        chunks.append(buffer.strip())

    return chunks if chunks else [text.strip()]


def overlap_tail(chunk: str, overlap: int) -> str:
    """Return the longest word-aligned suffix of *chunk* within *overlap* chars.

    Words are taken whole, scanning backward from the end; an empty string
    is returned when the last word alone exceeds the budget.
    """
    if overlap <= 0:
        return ""
    chunk = chunk.rstrip()
    start = len(chunk)
    for word in reversed(list(_WORD.finditer(chunk))):
        if len(chunk) - word.start() > overlap:
            break
        start = word.start()
    return chunk[start:]


def split_sentences(text: str) -> list[str]:
    """Split *text* after ``.``, ``!`` or ``?`` followed by whitespace.

    Each sentence keeps its trailing whitespace, so ``"".join(result) == text``.
    """
    return _SENTENCE.findall(text)


# -- internals ----------------------------------------------------------------


def _fits(buffer: str, piece: str, separator: str, max_size: int) -> bool:
    return len(_join(buffer, piece, separator)) <= max_size


def _join(buffer: str, piece: str, separator: str) -> str:
    if not buffer:
        return piece
    if not piece:
        return buffer
    return buffer + separator + piece


def _pack_sentences(buffer: str, max_size: int, chunks: list[str]) -> str:
    """Greedily re-pack an oversized *buffer* by sentence.

    Full chunks are appended to *chunks*; the unfinished remainder is
    returned so that following paragraphs can still be packed onto it.
    No overlap is inserted between sentence-level chunks.
    """
    current = ""
    for sentence in split_sentences(buffer):
        if len((current + sentence).rstrip()) <= max_size:
            current += sentence
            continue
        if current.strip():
            chunks.append(current.strip())
        current = sentence
    return current.rstrip()
