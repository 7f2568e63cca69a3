"""
Knowledge Mining - Document Commands and Queries
"""

from dataclasses import dataclass, field
from typing import Optional

from ..models import (
    Document,
    DocumentTraits,
    GetDocumentsResponse,
    UploadDocument,
)
from ..storage.storage_service import DEFAULT_PAGE_SIZE, StorageService
from .mediator import Mediator


@dataclass(frozen=True)
class GetDocumentsQuery:
    search_prefix: Optional[str] = None
    page_size: int = DEFAULT_PAGE_SIZE
    continuation_token: Optional[str] = None


@dataclass(frozen=True)
class UploadDocumentsCommand:
    documents: list[UploadDocument] = field(default_factory=list)


@dataclass(frozen=True)
class SetDocumentTraitsCommand:
    document: Document
    traits: DocumentTraits = DocumentTraits.ALL


@dataclass(frozen=True)
class DownloadDocumentQuery:
    document_name: str


@dataclass(frozen=True)
class DeleteDocumentCommand:
    document_name: str


class DocumentHandlers:
    """Handlers for document commands and queries, backed by StorageService."""

    def __init__(self, storage_service: StorageService):
        self.storage_service = storage_service

    def get_documents(self, query: GetDocumentsQuery) -> GetDocumentsResponse:
        return self.storage_service.get_documents(
            query.search_prefix, query.page_size, query.continuation_token
        )

    def upload_documents(self, command: UploadDocumentsCommand) -> list[Document]:
        return self.storage_service.upload_documents(command.documents)

    def set_document_traits(self, command: SetDocumentTraitsCommand) -> None:
        self.storage_service.set_document_traits(command.document, command.traits)

    def download_document(self, query: DownloadDocumentQuery) -> bytes:
        return self.storage_service.download_document(query.document_name)

    def delete_document(self, command: DeleteDocumentCommand) -> None:
        self.storage_service.delete_document(command.document_name)


def register_document_handlers(mediator: Mediator, storage_service: StorageService) -> None:
    """Register every document handler on the mediator."""
    handlers = DocumentHandlers(storage_service)
    mediator.register(GetDocumentsQuery, handlers.get_documents)
    mediator.register(UploadDocumentsCommand, handlers.upload_documents)
    mediator.register(SetDocumentTraitsCommand, handlers.set_document_traits)
    mediator.register(DownloadDocumentQuery, handlers.download_document)
    mediator.register(DeleteDocumentCommand, handlers.delete_document)
