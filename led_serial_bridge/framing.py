from __future__ import annotations

from typing import List, Final


class LineFramer:
    """
    Splits an inbound byte stream into newline-delimited text lines.
    Features:
        - Keeps partial lines buffered across calls
        - Emits every complete line in a chunk, in order
        - Strips surrounding whitespace (including the trailing CR of CRLF)
        - Drops lines longer than max_line_len and resyncs on the next newline
    Args:
        max_line_len (int): Maximum buffered line length in bytes
        encoding (str): Text encoding of the stream
    """
    DELIMITER: Final[int] = 0x0A

    def __init__(self, max_line_len: int = 1024, encoding: str = "utf-8"):
        self.max_line_len = max_line_len
        self.encoding = encoding
        self._buf = bytearray()
        self._overflow = False

    def feed(self, data: bytes) -> List[str]:
        """
        Consume a chunk of bytes.
        Args:
            data (bytes): Bytes read from the transport
        Returns:
            List[str]: Complete lines found so far, oldest first
        """
        out: List[str] = []
        for b in data:
            if b == LineFramer.DELIMITER:
                if not self._overflow:
                    out.append(self._buf.decode(self.encoding, errors="replace").strip())
                self._buf.clear()
                self._overflow = False
                continue

            if self._overflow:
                continue
            if len(self._buf) < self.max_line_len:
                self._buf.append(b)
            else:
                self._buf.clear()
                self._overflow = True
        return out

    def reset(self) -> None:
        """Discard any buffered partial line."""
        self._buf.clear()
        self._overflow = False

    @property
    def pending(self) -> bytes:
        """Bytes received since the last newline."""
        return bytes(self._buf)
