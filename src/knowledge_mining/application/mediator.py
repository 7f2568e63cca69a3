"""
Knowledge Mining - Mediator

In-process dispatch of commands and queries to their handlers.
"""

import logging
from typing import Any, Callable, Optional

from ..queues.queue_service import QueueService
from ..storage.storage_service import StorageService

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Any]


class Mediator:
    """Routes each request to the handler registered for its type."""

    def __init__(self):
        self._handlers: dict[type, Handler] = {}

    def register(self, request_type: type, handler: Handler) -> None:
        """
        Register the handler for a request type.

        Args:
            request_type: Command or query class.
            handler: Callable taking the request and returning its result.
        """
        self._handlers[request_type] = handler

    def send(self, request: Any) -> Any:
        """
        Dispatch a request to its handler.

        Args:
            request: A registered command or query instance.

        Returns:
            The handler's result.

        Raises:
            LookupError: If no handler is registered for the request type.
        """
        handler = self._handlers.get(type(request))
        if handler is None:
            raise LookupError(f"No handler registered for {type(request).__name__}")

        logger.debug(f"Dispatching {type(request).__name__}")
        return handler(request)


def build_mediator(
    storage_service: Optional[StorageService] = None,
    queue_service: Optional[QueueService] = None,
) -> Mediator:
    """
    Create a mediator with every document and summary handler registered.

    Args:
        storage_service: Blob storage service. Defaults to a new instance.
        queue_service: Queue service. Defaults to a new instance.

    Returns:
        Mediator: The wired mediator.
    """
    from .documents import register_document_handlers
    from .summaries import register_summary_handlers

    mediator = Mediator()
    register_document_handlers(mediator, storage_service or StorageService())
    register_summary_handlers(mediator, queue_service or QueueService())
    return mediator
