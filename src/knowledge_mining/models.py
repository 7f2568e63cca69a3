"""
Knowledge Mining - Data Models

Data classes for stored documents, uploads, listing pages and queue receipts.
"""

import io
from dataclasses import dataclass, field
from datetime import datetime
from enum import Flag
from typing import IO, Any, Optional


class DocumentTraits(Flag):
    """Which parts of a stored document a traits update touches."""

    NONE = 0
    METADATA = 1
    TAGS = 2
    ALL = METADATA | TAGS

    @classmethod
    def from_names(cls, names: list[str]) -> "DocumentTraits":
        """
        Build a flag from trait names such as ``["metadata", "tags"]``.

        Raises:
            ValueError: If a name is not a known trait.
        """
        traits = cls.NONE
        for name in names:
            try:
                traits |= cls[name.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown document trait: {name}") from None
        return traits


@dataclass
class Document:
    """A stored document as returned by listings and uploads."""

    name: str
    tags: Optional[dict[str, str]] = None
    metadata: Optional[dict[str, str]] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "tags": self.tags,
            "metadata": self.metadata,
        }


@dataclass
class UploadDocument:
    """A document waiting to be uploaded, backed by a binary stream."""

    name: str
    content: IO[bytes]
    content_type: str = "application/octet-stream"
    tags: Optional[dict[str, str]] = None
    metadata: Optional[dict[str, str]] = None
    leave_open: bool = False

    @classmethod
    def from_bytes(cls, name: str, data: bytes, **kwargs: Any) -> "UploadDocument":
        """Create an upload from in-memory bytes."""
        return cls(name=name, content=io.BytesIO(data), **kwargs)

    @property
    def size(self) -> Optional[int]:
        """
        Bytes left to read in the content stream.

        The read position is left untouched. Returns None for streams that
        cannot seek or are already closed.
        """
        if self.content.closed or not self.content.seekable():
            return None
        position = self.content.tell()
        end = self.content.seek(0, io.SEEK_END)
        self.content.seek(position)
        return end - position

    @property
    def is_empty(self) -> bool:
        return self.size == 0

    def close(self) -> None:
        """Close the content stream unless the caller asked to keep it open."""
        if not self.leave_open:
            self.content.close()

    def __repr__(self) -> str:
        return f"UploadDocument(name={self.name!r}, size={self.size} bytes)"


@dataclass
class GetDocumentsResponse:
    """One page of a document listing."""

    documents: list[Document] = field(default_factory=list)
    next_page: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "documents": [document.to_dict() for document in self.documents],
            "next_page": self.next_page,
        }


@dataclass
class QueueReceipt:
    """Receipt for a message posted to a queue."""

    message_id: str
    insertion_time: Optional[datetime] = None
    expiration_time: Optional[datetime] = None
    pop_receipt: Optional[str] = None
    time_next_visible: Optional[datetime] = None

    @classmethod
    def from_message(cls, message: Any) -> "QueueReceipt":
        """
        Create a QueueReceipt from a queue SDK ``QueueMessage``.

        Args:
            message: The message returned by ``QueueClient.send_message``.

        Returns:
            QueueReceipt: The translated receipt.
        """
        return cls(
            message_id=message.id,
            insertion_time=message.inserted_on,
            expiration_time=message.expires_on,
            pop_receipt=message.pop_receipt,
            time_next_visible=message.next_visible_on,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""

        def _iso(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value is not None else None

        return {
            "message_id": self.message_id,
            "insertion_time": _iso(self.insertion_time),
            "expiration_time": _iso(self.expiration_time),
            "pop_receipt": self.pop_receipt,
            "time_next_visible": _iso(self.time_next_visible),
        }
