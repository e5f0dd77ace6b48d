from __future__ import annotations

import logging
from typing import Callable

from hexedit.core.errors import OperationCanceled, SequenceNotFound
from hexedit.core.progress import NullProgress, ProgressHandler, percent

logger = logging.getLogger(__name__)

SEARCH_WINDOW = 1024

Reader = Callable[[int, int], bytes]


def find_sequence(
    read: Reader,
    size: int,
    start: int,
    sequence: bytes,
    *,
    backward: bool = False,
    progress: ProgressHandler | None = None,
    window: int = SEARCH_WINDOW,
) -> int:
    """Find `sequence` starting next to `start`, wrapping around the file.

    `read(offset, length)` must return file content (with pending edits
    overlaid) truncated at EOF. Candidate positions are visited in one full
    revolution: `start+1 .. size-1, 0 .. start` forward, or
    `start-1 .. 0, size-1 .. start` backward. Each window of `window`
    candidates is read with `len(sequence) - 1` extra bytes so matches that
    straddle window boundaries are still seen.

    Returns the offset of the first byte of the match. Raises
    `SequenceNotFound` after a full revolution, `OperationCanceled` when the
    progress handler returns False.
    """
    if not sequence:
        raise ValueError("sequence must not be empty")
    if window <= 0:
        raise ValueError("window must be positive")
    progress = progress or NullProgress()
    if size <= 0 or len(sequence) > size:
        raise SequenceNotFound("sequence not found")

    start = min(max(start, 0), size - 1)
    overlap = len(sequence) - 1
    scanned = 0

    if not backward:
        pos = start + 1 if start + 1 < size else 0
        while scanned < size:
            count = min(window, size - scanned, size - pos)
            data = read(pos, count + overlap)
            idx = data.find(sequence)
            if idx != -1:
                return pos + idx
            scanned += count
            pos += count
            if pos >= size:
                pos = 0
            logger.debug("search forward scanned=%d/%d", scanned, size)
            if not progress.update(percent(scanned, size)):
                raise OperationCanceled("search aborted")
    else:
        end = start if start > 0 else size
        while scanned < size:
            count = min(window, size - scanned, end)
            lo = end - count
            data = read(lo, count + overlap)
            idx = data.rfind(sequence)
            if idx != -1:
                return lo + idx
            scanned += count
            end = lo if lo > 0 else size
            logger.debug("search backward scanned=%d/%d", scanned, size)
            if not progress.update(percent(scanned, size)):
                raise OperationCanceled("search aborted")

    raise SequenceNotFound("sequence not found")


_HEX_DIGITS = "0123456789abcdefABCDEF"


def parse_sequence(text: str) -> bytes | None:
    """Turn user input into a byte sequence.

    Accepts hex ('DEADBEEF', 'de ad be ef', '0xDEAD'; an odd trailing digit is
    padded with 0) or ASCII text. A leading quote (' or ") forces ASCII.
    Returns None for empty input.
    """
    s = text.strip()
    if not s:
        return None
    if s[0] in "'\"":
        body = s[1:]
        if len(body) > 1 and body[-1] == s[0]:
            body = body[:-1]
        return body.encode("utf-8") or None

    compact = s.replace(" ", "")
    if compact.lower().startswith("0x"):
        compact = compact[2:]
    if compact and all(c in _HEX_DIGITS for c in compact):
        if len(compact) % 2:
            compact += "0"
        return bytes.fromhex(compact)

    # Fallback: ASCII
    return s.encode("utf-8")
