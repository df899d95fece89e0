"""
=============================================================================
LINE FRAMING
=============================================================================

Turns an arbitrarily fragmented byte stream into newline-terminated lines.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

A client that sends "hello\\n" once may be seen by the relay as:

    recv() → b"hello\\n"          (one read)
    recv() → b"hel"               (partial)
    recv() → b"lo\\n"              (rest)
    recv() → b"hello\\nwor"        (one line plus the start of the next)

The framer therefore keeps whatever has not yet reached a delimiter and
joins it with the next read:

    ┌─────────────────────────────────────────────────────────────────┐
    │                      extract() Flow                             │
    ├─────────────────────────────────────────────────────────────────┤
    │                                                                  │
    │   pending = b"ab"             new = b"c\\nx\\n\\ny"                 │
    │        │                           │                            │
    │        └──────────┬────────────────┘                            │
    │                   ▼                                             │
    │          b"abc\\nx\\n\\ny"            ← append                      │
    │                   │                                             │
    │        ┌──────────┼──────────┬──────────┐                       │
    │        ▼          ▼          ▼          ▼                       │
    │    b"abc\\n"    b"x\\n"     b"\\n"       b"y"                       │
    │    line 1     line 2     line 3    remainder (kept)             │
    │                                                                  │
    └─────────────────────────────────────────────────────────────────┘

Rules:
- Every line keeps its own trailing b"\\n".
- An empty line (just b"\\n") is a real line and is returned.
- Bytes after the last delimiter are never returned; they wait, across
  any number of reads, until a delimiter arrives or the connection ends.
- Bytes are not decoded. A line is whatever bytes the client sent.

=============================================================================
"""

from typing import List, Tuple, Union

from ..errors import FatalError


DELIMITER = b"\n"

BytesLike = Union[bytes, bytearray, memoryview]


def extract(buffer: BytesLike, new_bytes: BytesLike) -> Tuple[bytearray, List[bytes]]:
    """
    Append new_bytes to buffer and split off every complete line.
    
    The caller's buffer is not modified; a fresh bytearray holding the
    remainder is returned instead.
    
    Args:
        buffer: Bytes received earlier that did not end in a delimiter.
        new_bytes: Bytes from the latest read.
    
    Returns:
        (remainder, lines) where lines are in arrival order and each ends
        with DELIMITER.
    
    Raises:
        FatalError: If memory runs out while building the new buffer.
    """
    try:
        pending = bytearray(buffer)
        pending += new_bytes
        
        lines: List[bytes] = []
        start = 0
        
        while True:
            end = pending.find(DELIMITER, start)
            if end < 0:
                break
            lines.append(bytes(pending[start:end + 1]))
            start = end + 1
        
        # Drop the consumed prefix; what is left is the partial line
        del pending[:start]
    except MemoryError as e:
        raise FatalError("out of memory while framing") from e
    
    return pending, lines

