"""Streaming ``multipart/form-data`` encoding.

Bodies are produced lazily, one chunk at a time, so uploading a file of any
size holds at most one chunk of it in memory. The transport pulls chunks as
it writes them to the socket, which gives back-pressure from the network to
the file being read.
"""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator


__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "MultipartPart",
    "MultipartStream",
    "PartContent",
]

DEFAULT_CHUNK_SIZE = 64 * 1024

type PartContent = (
    bytes | bytearray | memoryview | str | Path | IO[bytes] | AsyncIterable[bytes]
)

_CRLF = b"\r\n"


def _quote(value: str) -> str:
    """Escape a name or filename for a Content-Disposition parameter."""
    return value.replace('"', "%22").replace("\r", "%0D").replace("\n", "%0A")


def _field_value(value: Any) -> str:  # noqa: ANN401
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


@dataclass(frozen=True, slots=True)
class MultipartPart:
    """One named part of a multipart body.

    Attributes:
        name: Form field name.
        content: The part's data: bytes, text, a path (opened lazily), a
            binary file object, or an async iterable of bytes.
        filename: File name to announce, if this part is a file.
        content_type: MIME type of the part, if any.
    """

    name: str
    content: PartContent
    filename: str | None = None
    content_type: str | None = None

    @classmethod
    def field(cls, name: str, value: Any) -> MultipartPart:  # noqa: ANN401
        """Create a plain form field part.

        Args:
            name: Form field name.
            value: Field value; bools render as ``true``/``false`` and enums
                by value.

        Returns:
            The form field part.
        """
        return cls(name=name, content=_field_value(value))

    @classmethod
    def file(
        cls,
        name: str,
        content: PartContent,
        *,
        filename: str | None = None,
        content_type: str = "application/octet-stream",
    ) -> MultipartPart:
        """Create a file part.

        Args:
            name: Form field name.
            content: File path, file object, bytes or async byte iterable.
            filename: Announced file name; defaults to the path's name.
            content_type: MIME type of the file.

        Returns:
            The file part.
        """
        if filename is None and isinstance(content, Path):
            filename = content.name
        return cls(
            name=name,
            content=content,
            filename=filename or name,
            content_type=content_type,
        )

    def render_headers(self) -> bytes:
        """Return the part's header block, including the blank line."""
        disposition = f'form-data; name="{_quote(self.name)}"'
        if self.filename is not None:
            disposition += f'; filename="{_quote(self.filename)}"'
        lines = [f"Content-Disposition: {disposition}"]
        if self.content_type is not None:
            lines.append(f"Content-Type: {self.content_type}")
        return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")

    @property
    def size(self) -> int | None:
        """Byte length of the content, or None if it cannot be known upfront."""
        content = self.content
        if isinstance(content, str):
            return len(content.encode("utf-8"))
        if isinstance(content, bytes | bytearray):
            return len(content)
        if isinstance(content, memoryview):
            return content.nbytes
        if isinstance(content, Path):
            return content.stat().st_size
        if hasattr(content, "fileno") and hasattr(content, "tell"):
            try:
                return os.fstat(content.fileno()).st_size - content.tell()
            except (OSError, ValueError):
                return None
        return None

    @property
    def replayable(self) -> bool:
        """Whether the content can be read again for a retried request."""
        return isinstance(self.content, bytes | bytearray | memoryview | str | Path)

    async def iter_content(self, chunk_size: int) -> AsyncIterator[bytes]:
        """Yield the content in chunks of at most ``chunk_size`` bytes."""
        content = self.content
        if isinstance(content, str):
            content = content.encode("utf-8")
        if isinstance(content, bytes | bytearray | memoryview):
            view = memoryview(content)
            for start in range(0, len(view), chunk_size):
                yield bytes(view[start : start + chunk_size])
            return
        if isinstance(content, Path):
            with content.open("rb") as f:
                while chunk := f.read(chunk_size):
                    yield chunk
            return
        if hasattr(content, "read"):
            while chunk := content.read(chunk_size):  # type: ignore[union-attr]
                yield chunk
            return
        async for piece in content:
            view = memoryview(piece)
            for start in range(0, len(view), chunk_size):
                yield bytes(view[start : start + chunk_size])


class MultipartStream:
    """Lazily encoded ``multipart/form-data`` body.

    Iterating the stream yields boundary lines, part headers and body chunks
    on demand. No chunk exceeds ``chunk_size`` bytes.

    Attributes:
        boundary: The multipart boundary string.
        chunk_size: Maximum size of a yielded body chunk.
    """

    def __init__(
        self,
        parts: list[MultipartPart],
        *,
        boundary: str | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """Initialize the stream.

        Args:
            parts: Ordered parts of the body.
            boundary: Boundary string; a random one is generated if omitted.
            chunk_size: Maximum size of a yielded body chunk.
        """
        if chunk_size <= 0:
            msg = "chunk_size must be positive"
            raise ValueError(msg)
        self.parts = list(parts)
        self.boundary = boundary or secrets.token_hex(16)
        self.chunk_size = chunk_size
        self._consumed = False

    @property
    def content_type(self) -> str:
        """The ``Content-Type`` header value for this body."""
        return f"multipart/form-data; boundary={self.boundary}"

    @property
    def replayable(self) -> bool:
        """Whether the whole body can be produced more than once."""
        return all(part.replayable for part in self.parts)

    @property
    def content_length(self) -> int | None:
        """Total encoded size, or None if any part's size is unknown."""
        delimiter = len(b"--" + self.boundary.encode("ascii") + _CRLF)
        total = 0
        for part in self.parts:
            size = part.size
            if size is None:
                return None
            total += delimiter + len(part.render_headers()) + size + len(_CRLF)
        return total + len(b"--" + self.boundary.encode("ascii") + b"--" + _CRLF)

    async def __aiter__(self) -> AsyncIterator[bytes]:
        if self._consumed and not self.replayable:
            msg = "Multipart body with one-shot sources was already consumed"
            raise RuntimeError(msg)
        self._consumed = True
        boundary = self.boundary.encode("ascii")
        for part in self.parts:
            yield b"--" + boundary + _CRLF + part.render_headers()
            async for chunk in part.iter_content(self.chunk_size):
                yield chunk
            yield _CRLF
        yield b"--" + boundary + b"--" + _CRLF
