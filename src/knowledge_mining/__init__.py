# Knowledge Mining - Document Services
"""
Document storage and summarization request services for the knowledge
mining solution. Commands and queries are dispatched through an in-process
mediator to Azure Blob Storage and Azure Queue Storage.
"""

__version__ = "0.1.0"
