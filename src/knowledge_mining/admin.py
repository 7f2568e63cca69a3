"""
Knowledge Mining - Admin Service

Lists documents that failed processing and were moved under the error prefix.
"""

import logging
from typing import Optional

from .application.documents import GetDocumentsQuery
from .application.mediator import Mediator
from .config import get_settings
from .models import Document

logger = logging.getLogger(__name__)


class AdminService:
    """Queries backing the admin view."""

    def __init__(
        self,
        mediator: Mediator,
        error_documents_prefix: Optional[str] = None,
        page_size: Optional[int] = None,
    ):
        settings = get_settings()

        self.mediator = mediator
        self.error_documents_prefix = error_documents_prefix or settings.error_documents_prefix
        self.page_size = page_size or settings.admin_page_size

    def get_error_documents(self) -> list[Document]:
        """
        Get the first page of error documents.

        Returns:
            list[Document]: Documents stored under the error prefix.
        """
        response = self.mediator.send(
            GetDocumentsQuery(self.error_documents_prefix, self.page_size, None)
        )
        logger.info(f"Found {len(response.documents)} error documents")
        return list(response.documents)
