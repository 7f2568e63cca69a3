"""
Knowledge Mining - Summary Request Commands
"""

from dataclasses import dataclass

from ..models import QueueReceipt
from ..queues.queue_service import QueueService
from .mediator import Mediator


@dataclass(frozen=True)
class SendExtractiveSummaryRequestCommand:
    message: str


@dataclass(frozen=True)
class SendAbstractiveSummaryRequestCommand:
    message: str


def register_summary_handlers(mediator: Mediator, queue_service: QueueService) -> None:
    """Register the summary request handlers on the mediator."""

    def send_extractive(command: SendExtractiveSummaryRequestCommand) -> QueueReceipt:
        return queue_service.send_extractive_summary_request(command.message)

    def send_abstractive(command: SendAbstractiveSummaryRequestCommand) -> QueueReceipt:
        return queue_service.send_abstractive_summary_request(command.message)

    mediator.register(SendExtractiveSummaryRequestCommand, send_extractive)
    mediator.register(SendAbstractiveSummaryRequestCommand, send_abstractive)
