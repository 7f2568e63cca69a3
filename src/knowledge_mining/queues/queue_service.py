"""
Knowledge Mining - Queue Service

Posts summarization requests to Azure Queue Storage.
"""

import logging
from typing import Optional

from azure.storage.queue import QueueClient, QueueServiceClient

from ..config import get_settings
from ..models import QueueReceipt

logger = logging.getLogger(__name__)


class QueueService:
    """Service for sending summarization requests to Azure Queue Storage."""

    def __init__(
        self,
        connection_string: Optional[str] = None,
        extractive_summary_requests: Optional[str] = None,
        abstractive_summary_requests: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        """
        Initialize the queue service.

        Args:
            connection_string: Azure Storage connection string.
                              Defaults to settings.
            extractive_summary_requests: Queue name for extractive summaries.
            abstractive_summary_requests: Queue name for abstractive summaries.
            timeout: Default server-side timeout in seconds for each call.
        """
        settings = get_settings()

        self.connection_string = connection_string or settings.effective_queue_connection_string
        self.extractive_summary_requests = (
            extractive_summary_requests or settings.extractive_summary_requests_queue
        )
        self.abstractive_summary_requests = (
            abstractive_summary_requests or settings.abstractive_summary_requests_queue
        )
        self.timeout = timeout if timeout is not None else settings.default_request_timeout
        self._client: Optional[QueueServiceClient] = None

    @property
    def client(self) -> QueueServiceClient:
        """Get or create the QueueServiceClient."""
        if self._client is None:
            self._client = QueueServiceClient.from_connection_string(
                self.connection_string
            )
        return self._client

    def send_extractive_summary_request(
        self, message: str, timeout: Optional[int] = None
    ) -> QueueReceipt:
        """
        Queue a request for an extractive summary.

        Args:
            message: The request payload.
            timeout: Server-side timeout in seconds.

        Returns:
            QueueReceipt: Receipt of the queued message.

        Raises:
            ValueError: If the extractive queue is not configured.
        """
        if not self.extractive_summary_requests:
            raise ValueError("EXTRACTIVE_SUMMARY_REQUESTS_QUEUE is not configured")

        return self._send_message(self.extractive_summary_requests, message, timeout)

    def send_abstractive_summary_request(
        self, message: str, timeout: Optional[int] = None
    ) -> QueueReceipt:
        """
        Queue a request for an abstractive summary.

        Args:
            message: The request payload.
            timeout: Server-side timeout in seconds.

        Returns:
            QueueReceipt: Receipt of the queued message.

        Raises:
            ValueError: If the abstractive queue is not configured.
        """
        if not self.abstractive_summary_requests:
            raise ValueError("ABSTRACTIVE_SUMMARY_REQUESTS_QUEUE is not configured")

        return self._send_message(self.abstractive_summary_requests, message, timeout)

    def _get_queue_client(self, queue_name: str) -> QueueClient:
        return self.client.get_queue_client(queue_name)

    def _send_message(
        self, queue_name: str, message: str, timeout: Optional[int]
    ) -> QueueReceipt:
        logger.info(f"Sending message to queue '{queue_name}'")

        timeout = timeout if timeout is not None else self.timeout
        options = {"timeout": timeout} if timeout is not None else {}

        try:
            response = self._get_queue_client(queue_name).send_message(message, **options)
        except Exception as e:
            logger.error(f"Failed to send message to queue '{queue_name}': {e}", exc_info=True)
            raise

        if response is None:
            raise ValueError(f"Queue '{queue_name}' returned no send receipt")

        receipt = QueueReceipt.from_message(response)
        logger.debug(f"Queued message {receipt.message_id} on '{queue_name}'")
        return receipt


# Module-level convenience functions
_service: Optional[QueueService] = None


def _get_service() -> QueueService:
    """Get or create the global queue service instance."""
    global _service
    if _service is None:
        _service = QueueService()
    return _service


def send_extractive_summary_request(message: str) -> QueueReceipt:
    """
    Queue a request for an extractive summary.

    Args:
        message: The request payload.

    Returns:
        QueueReceipt: Receipt of the queued message.
    """
    return _get_service().send_extractive_summary_request(message)


def send_abstractive_summary_request(message: str) -> QueueReceipt:
    """
    Queue a request for an abstractive summary.

    Args:
        message: The request payload.

    Returns:
        QueueReceipt: Receipt of the queued message.
    """
    return _get_service().send_abstractive_summary_request(message)
