"""
File uploads and text extraction.

Extraction itself belongs to an external collaborator; the controller only
depends on the ``TextExtractor`` protocol.
"""
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class Upload:
    """A file picked by the user."""
    file_name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@runtime_checkable
class TextExtractor(Protocol):
    async def extract_text(self, upload: Upload) -> str:
        """Return the text content of an upload."""
        ...


class UnsupportedFileType(ValueError):
    pass


class PlainTextExtractor:
    """Extractor for text/plain uploads; other formats need a dedicated extractor."""

    encoding = "utf-8"

    async def extract_text(self, upload: Upload) -> str:
        if upload.content_type != "text/plain":
            raise UnsupportedFileType(f"No text extractor for {upload.content_type}")
        return upload.data.decode(self.encoding, errors="replace")
