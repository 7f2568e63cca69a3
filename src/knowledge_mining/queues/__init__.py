# Knowledge Mining - Queues Package
"""
Azure Queue Storage dispatch of summarization requests.
"""

from .queue_service import (
    QueueService,
    send_abstractive_summary_request,
    send_extractive_summary_request,
)

__all__ = [
    "QueueService",
    "send_abstractive_summary_request",
    "send_extractive_summary_request",
]
