# Knowledge Mining - Application Package
"""
Commands, queries and the mediator that dispatches them.
"""

from .documents import (
    DeleteDocumentCommand,
    DownloadDocumentQuery,
    GetDocumentsQuery,
    SetDocumentTraitsCommand,
    UploadDocumentsCommand,
)
from .mediator import Mediator, build_mediator
from .summaries import (
    SendAbstractiveSummaryRequestCommand,
    SendExtractiveSummaryRequestCommand,
)

__all__ = [
    "DeleteDocumentCommand",
    "DownloadDocumentQuery",
    "GetDocumentsQuery",
    "Mediator",
    "SendAbstractiveSummaryRequestCommand",
    "SendExtractiveSummaryRequestCommand",
    "SetDocumentTraitsCommand",
    "UploadDocumentsCommand",
    "build_mediator",
]
