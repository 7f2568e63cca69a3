"""
Knowledge Mining - Blob Storage Service

Lists, uploads, downloads, tags and deletes documents in Azure Blob Storage.
"""

import logging
from typing import Iterable, Optional
from urllib.parse import unquote_plus

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import (
    BlobClient,
    BlobServiceClient,
    ContainerClient,
    ContentSettings,
)

from ..config import get_settings
from ..models import Document, DocumentTraits, GetDocumentsResponse, UploadDocument

logger = logging.getLogger(__name__)

# Constants
MAX_ITEMS_PER_REQUEST = 5000  # List Blobs maxresults ceiling
DEFAULT_PAGE_SIZE = 10


def merge_key_values(source: dict[str, str], updates: dict[str, str]) -> dict[str, str]:
    """
    Overlay updates onto source in place.

    New keys are added and existing keys overwritten. Keys missing from
    updates are kept.

    Returns:
        dict[str, str]: The updated source mapping.
    """
    for key, value in updates.items():
        source[key] = value
    return source


def remove_empty_tags(tags: dict[str, str]) -> dict[str, str]:
    """Drop pairs whose key or value is empty or whitespace."""
    return {
        key: value
        for key, value in tags.items()
        if key and key.strip() and value and value.strip()
    }


class StorageService:
    """Service for managing documents in Azure Blob Storage."""

    def __init__(
        self,
        connection_string: Optional[str] = None,
        container_name: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        """
        Initialize the storage service.

        Args:
            connection_string: Azure Storage connection string.
                              Defaults to settings.
            container_name: Container holding the documents.
                           Defaults to settings.
            timeout: Default server-side timeout in seconds for each call.
        """
        settings = get_settings()

        self.connection_string = connection_string or settings.storage_connection_string
        self.container_name = container_name or settings.storage_container_name
        self.timeout = timeout if timeout is not None else settings.default_request_timeout
        self._client: Optional[BlobServiceClient] = None

    @property
    def client(self) -> BlobServiceClient:
        """Get or create the BlobServiceClient."""
        if self._client is None:
            self._client = BlobServiceClient.from_connection_string(
                self.connection_string
            )
        return self._client

    def get_documents(
        self,
        search_prefix: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        continuation_token: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> GetDocumentsResponse:
        """
        Get one page of documents from the container.

        Args:
            search_prefix: Only list blobs whose name starts with this prefix.
            page_size: Documents per page. Values outside
                      1..MAX_ITEMS_PER_REQUEST fall back to DEFAULT_PAGE_SIZE.
            continuation_token: Token returned by the previous page.
            timeout: Server-side timeout in seconds.

        Returns:
            GetDocumentsResponse: The documents and the next page token.
        """
        search_prefix = search_prefix or ""
        if not 0 < page_size <= MAX_ITEMS_PER_REQUEST:
            page_size = DEFAULT_PAGE_SIZE

        logger.info(
            f"Listing documents in '{self.container_name}' "
            f"(prefix={search_prefix!r}, page_size={page_size})"
        )

        blobs = self._get_container_client().list_blobs(
            name_starts_with=search_prefix,
            include=["metadata", "tags"],
            results_per_page=page_size,
            **self._call_options(timeout),
        )
        pages = blobs.by_page(continuation_token=continuation_token)

        try:
            page = next(pages)
        except StopIteration:
            return GetDocumentsResponse()

        documents = [
            Document(name=blob.name, tags=blob.tags, metadata=blob.metadata)
            for blob in page
        ]
        next_page = pages.continuation_token or None

        logger.debug(f"Listed {len(documents)} documents, next page: {next_page}")
        return GetDocumentsResponse(documents=documents, next_page=next_page)

    def upload_documents(
        self,
        documents: Iterable[UploadDocument],
        timeout: Optional[int] = None,
    ) -> list[Document]:
        """
        Upload documents to the container.

        A failure on one document is logged and the remaining documents are
        still uploaded. Streams are closed afterwards unless leave_open is set.

        Args:
            documents: Documents to upload.
            timeout: Server-side timeout in seconds.

        Returns:
            list[Document]: The documents that were uploaded.
        """
        result: list[Document] = []
        documents = list(documents)

        if not documents:
            return result

        container = self._get_container_client()
        options = self._call_options(timeout)

        for file in documents:
            try:
                if file.is_empty:
                    logger.warning(f"Skipping empty document {file.name}")
                    continue

                blob = container.get_blob_client(file.name)
                blob.upload_blob(
                    file.content,
                    overwrite=True,
                    content_settings=ContentSettings(content_type=file.content_type),
                    **options,
                )

                if file.tags:
                    non_empty_tags = remove_empty_tags(file.tags)
                    blob.set_blob_tags(non_empty_tags, **options)
                    blob.set_blob_metadata(non_empty_tags, **options)

                result.append(Document(name=file.name, tags=file.tags))
                logger.info(f"Uploaded document {file.name}")
            except Exception:
                logger.critical(f"Failed to upload file {file.name}", exc_info=True)
            finally:
                file.close()

        return result

    def set_document_traits(
        self,
        document: Document,
        traits: DocumentTraits,
        timeout: Optional[int] = None,
    ) -> None:
        """
        Merge a document's metadata and/or tags into the stored blob.

        Args:
            document: Document carrying the name and the updates.
            traits: Which traits to update.
            timeout: Server-side timeout in seconds.
        """
        if DocumentTraits.METADATA in traits:
            self.set_document_metadata(document.name, document.metadata, timeout)

        if DocumentTraits.TAGS in traits and document.tags is not None:
            self.set_document_tags(document.name, document.tags, timeout)

    def set_document_metadata(
        self,
        document_name: str,
        metadata: Optional[dict[str, str]],
        timeout: Optional[int] = None,
    ) -> None:
        """
        Overlay metadata onto the blob's current metadata.

        Raises:
            AzureError: If reading or writing the metadata fails.
        """
        if metadata is None:
            return

        blob = self._get_container_client().get_blob_client(document_name)
        options = self._call_options(timeout)

        try:
            properties = blob.get_blob_properties(**options)
            merged = merge_key_values(dict(properties.metadata or {}), metadata)
            blob.set_blob_metadata(merged, **options)
        except Exception:
            logger.critical(
                f"Set {document_name} metadata {metadata} failed.", exc_info=True
            )
            raise

    def set_document_tags(
        self,
        document_name: str,
        tags: Optional[dict[str, str]],
        timeout: Optional[int] = None,
    ) -> None:
        """
        Overlay tags onto the blob's current index tags.

        Raises:
            AzureError: If reading or writing the tags fails.
        """
        if tags is None:
            return

        blob = self._get_container_client().get_blob_client(document_name)
        options = self._call_options(timeout)

        try:
            current = blob.get_blob_tags(**options)
            merged = merge_key_values(dict(current or {}), tags)
            blob.set_blob_tags(merged, **options)
        except Exception:
            logger.critical(f"Set {document_name} index tags {tags} failed.", exc_info=True)
            raise

    def download_document(
        self,
        document_name: str,
        timeout: Optional[int] = None,
    ) -> bytes:
        """
        Download a document's content.

        Args:
            document_name: Blob name, URL-encoded names allowed. A
                          ``container/blob`` path reads from that container.
            timeout: Server-side timeout in seconds.

        Returns:
            bytes: The content, or empty bytes if the name is empty or the
                   blob does not exist.
        """
        if not document_name:
            return b""

        blob = self._get_blob_client(document_name)
        options = self._call_options(timeout)

        if not blob.exists(**options):
            logger.warning(f"Document not found: {document_name}")
            return b""

        content = blob.download_blob(**options).readall()
        logger.info(f"Downloaded {len(content)} bytes from {document_name}")
        return content

    def delete_document(
        self,
        document_name: str,
        timeout: Optional[int] = None,
    ) -> None:
        """Delete a document from the container if it exists."""
        try:
            self._get_container_client().delete_blob(
                document_name, **self._call_options(timeout)
            )
            logger.info(f"Deleted document {document_name}")
        except ResourceNotFoundError:
            logger.debug(f"Document {document_name} already absent")

    def _get_blob_client(self, document_name: str) -> BlobClient:
        """
        Get a BlobClient for a document name or container/blob path.

        Args:
            document_name: Blob name or ``container/blob`` path.

        Returns:
            BlobClient: Client for the blob.
        """
        container_name = self.container_name
        if "/" in document_name:
            container_name, document_name = document_name.split("/", 1)

        container = self._get_container_client(container_name)
        return container.get_blob_client(unquote_plus(document_name))

    def _get_container_client(self, container_name: Optional[str] = None) -> ContainerClient:
        return self.client.get_container_client(container_name or self.container_name)

    def _call_options(self, timeout: Optional[int]) -> dict:
        timeout = timeout if timeout is not None else self.timeout
        return {"timeout": timeout} if timeout is not None else {}


# Module-level convenience functions
_service: Optional[StorageService] = None


def _get_service() -> StorageService:
    """Get or create the global storage service instance."""
    global _service
    if _service is None:
        _service = StorageService()
    return _service


def get_documents(
    search_prefix: Optional[str] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    continuation_token: Optional[str] = None,
) -> GetDocumentsResponse:
    """
    Get one page of documents.

    Args:
        search_prefix: Blob name prefix filter.
        page_size: Documents per page.
        continuation_token: Token from the previous page.

    Returns:
        GetDocumentsResponse: The page.
    """
    return _get_service().get_documents(search_prefix, page_size, continuation_token)


def download_document(document_name: str) -> bytes:
    """
    Download a document's content.

    Args:
        document_name: Blob name or container/blob path.

    Returns:
        bytes: The content.
    """
    return _get_service().download_document(document_name)
