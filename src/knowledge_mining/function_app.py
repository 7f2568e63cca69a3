"""
Knowledge Mining - Azure Function App

HTTP endpoints for document management and summarization requests.
"""

import base64
import binascii
import functools
import json
import logging
from typing import Any, Callable, Optional

import azure.functions as func

from .admin import AdminService
from .application.documents import (
    DeleteDocumentCommand,
    DownloadDocumentQuery,
    GetDocumentsQuery,
    SetDocumentTraitsCommand,
    UploadDocumentsCommand,
)
from .application.mediator import Mediator, build_mediator
from .application.summaries import (
    SendAbstractiveSummaryRequestCommand,
    SendExtractiveSummaryRequestCommand,
)
from .config import get_settings
from .models import Document, DocumentTraits, UploadDocument
from .storage.storage_service import DEFAULT_PAGE_SIZE

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Create the Function App
app = func.FunctionApp()


class BadRequestError(ValueError):
    """The request body or parameters are invalid."""


def _json_response(payload: Any, status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps(payload),
        status_code=status_code,
        mimetype="application/json",
    )


def _handle_errors(handler: Callable[..., func.HttpResponse]) -> Callable[..., func.HttpResponse]:
    """Turn bad input into 400 and anything else into a logged 500."""

    @functools.wraps(handler)
    def wrapper(*args, **kwargs) -> func.HttpResponse:
        try:
            return handler(*args, **kwargs)
        except BadRequestError as e:
            return _json_response({"error": str(e)}, status_code=400)
        except Exception as e:
            logger.error(f"Error in {handler.__name__}: {e}", exc_info=True)
            return _json_response({"error": str(e)}, status_code=500)

    return wrapper


def _get_json_body(req: func.HttpRequest) -> Any:
    try:
        return req.get_json()
    except ValueError:
        raise BadRequestError("Request body must be valid JSON") from None


def _get_route_name(req: func.HttpRequest) -> str:
    name = req.route_params.get("name")
    if not name:
        raise BadRequestError("Missing document name in route")
    return name


def _get_string_mapping(body: dict, key: str) -> Optional[dict[str, str]]:
    value = body.get(key)
    if value is None:
        return None
    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise BadRequestError(f"'{key}' must be an object of string values")
    return value


def _parse_upload(item: Any) -> UploadDocument:
    if not isinstance(item, dict) or not item.get("name"):
        raise BadRequestError("Each document needs a 'name'")

    try:
        content = base64.b64decode(item.get("content", ""), validate=True)
    except (binascii.Error, TypeError):
        raise BadRequestError(f"Content of '{item['name']}' is not valid base64") from None

    return UploadDocument.from_bytes(
        item["name"],
        content,
        content_type=item.get("content_type") or "application/octet-stream",
        tags=_get_string_mapping(item, "tags"),
    )


@_handle_errors
def handle_list_documents(
    req: func.HttpRequest, mediator: Optional[Mediator] = None
) -> func.HttpResponse:
    """List one page of documents."""
    mediator = mediator or get_mediator()
    try:
        page_size = int(req.params.get("page_size", DEFAULT_PAGE_SIZE))
    except ValueError:
        raise BadRequestError("'page_size' must be an integer") from None

    response = mediator.send(
        GetDocumentsQuery(
            search_prefix=req.params.get("prefix"),
            page_size=page_size,
            continuation_token=req.params.get("continuation_token"),
        )
    )
    return _json_response(response.to_dict())


@_handle_errors
def handle_upload_documents(
    req: func.HttpRequest, mediator: Optional[Mediator] = None
) -> func.HttpResponse:
    """
    Upload one or more base64-encoded documents.

    Request body: {"name", "content", "content_type", "tags"} or a list of them.
    """
    mediator = mediator or get_mediator()
    body = _get_json_body(req)
    items = body if isinstance(body, list) else [body]
    documents = [_parse_upload(item) for item in items]

    uploaded = mediator.send(UploadDocumentsCommand(documents))
    return _json_response([document.to_dict() for document in uploaded], status_code=201)


@_handle_errors
def handle_download_document(
    req: func.HttpRequest, mediator: Optional[Mediator] = None
) -> func.HttpResponse:
    """Download a document's raw content."""
    mediator = mediator or get_mediator()
    name = _get_route_name(req)
    content = mediator.send(DownloadDocumentQuery(name))

    if not content:
        return _json_response({"error": f"Document not found: {name}"}, status_code=404)

    return func.HttpResponse(
        body=content,
        status_code=200,
        mimetype="application/octet-stream",
    )


@_handle_errors
def handle_delete_document(
    req: func.HttpRequest, mediator: Optional[Mediator] = None
) -> func.HttpResponse:
    """Delete a document."""
    mediator = mediator or get_mediator()
    mediator.send(DeleteDocumentCommand(_get_route_name(req)))
    return func.HttpResponse(status_code=204)


@_handle_errors
def handle_set_document_traits(
    req: func.HttpRequest, mediator: Optional[Mediator] = None
) -> func.HttpResponse:
    """
    Merge tags and/or metadata into a stored document.

    Request body: {"tags": {...}, "metadata": {...}, "traits": ["metadata", "tags"]}
    """
    mediator = mediator or get_mediator()
    name = _get_route_name(req)
    body = _get_json_body(req)
    if not isinstance(body, dict):
        raise BadRequestError("Request body must be a JSON object")

    names = body.get("traits", ["metadata", "tags"])
    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        raise BadRequestError("'traits' must be a list of trait names")

    try:
        traits = DocumentTraits.from_names(names)
    except ValueError as e:
        raise BadRequestError(str(e)) from None

    document = Document(
        name=name,
        tags=_get_string_mapping(body, "tags"),
        metadata=_get_string_mapping(body, "metadata"),
    )
    mediator.send(SetDocumentTraitsCommand(document, traits))
    return func.HttpResponse(status_code=204)


@_handle_errors
def handle_summary_request(
    req: func.HttpRequest, command_type: type, mediator: Optional[Mediator] = None
) -> func.HttpResponse:
    """Queue a summary request. Request body: {"message": "..."}"""
    mediator = mediator or get_mediator()
    body = _get_json_body(req)
    message = body.get("message") if isinstance(body, dict) else None
    if not message:
        raise BadRequestError("Missing 'message' in request body")

    receipt = mediator.send(command_type(message))
    return _json_response(receipt.to_dict(), status_code=202)


@_handle_errors
def handle_error_documents(
    req: func.HttpRequest, mediator: Optional[Mediator] = None
) -> func.HttpResponse:
    """List documents under the error prefix."""
    mediator = mediator or get_mediator()
    documents = AdminService(mediator).get_error_documents()
    return _json_response([document.to_dict() for document in documents])


# Global mediator instance
_mediator: Optional[Mediator] = None


def get_mediator() -> Mediator:
    """Get or create the application mediator."""
    global _mediator
    if _mediator is None:
        # Validate configuration
        settings = get_settings()
        missing = settings.validate_required()
        if missing:
            raise RuntimeError(
                f"Missing required configuration: {', '.join(missing)}"
            )
        _mediator = build_mediator()
    return _mediator


@app.function_name(name="list_documents")
@app.route(route="documents", methods=["GET"])
def list_documents(req: func.HttpRequest) -> func.HttpResponse:
    return handle_list_documents(req)


@app.function_name(name="upload_documents")
@app.route(route="documents", methods=["POST"])
def upload_documents(req: func.HttpRequest) -> func.HttpResponse:
    return handle_upload_documents(req)


@app.function_name(name="download_document")
@app.route(route="documents/{*name}", methods=["GET"])
def download_document(req: func.HttpRequest) -> func.HttpResponse:
    return handle_download_document(req)


@app.function_name(name="delete_document")
@app.route(route="documents/{*name}", methods=["DELETE"])
def delete_document(req: func.HttpRequest) -> func.HttpResponse:
    return handle_delete_document(req)


@app.function_name(name="set_document_traits")
@app.route(route="traits/{*name}", methods=["PUT"])
def set_document_traits(req: func.HttpRequest) -> func.HttpResponse:
    return handle_set_document_traits(req)


@app.function_name(name="extractive_summary_request")
@app.route(route="summaries/extractive", methods=["POST"])
def extractive_summary_request(req: func.HttpRequest) -> func.HttpResponse:
    return handle_summary_request(req, SendExtractiveSummaryRequestCommand)


@app.function_name(name="abstractive_summary_request")
@app.route(route="summaries/abstractive", methods=["POST"])
def abstractive_summary_request(req: func.HttpRequest) -> func.HttpResponse:
    return handle_summary_request(req, SendAbstractiveSummaryRequestCommand)


@app.function_name(name="error_documents")
@app.route(route="admin/error-documents", methods=["GET"])
def error_documents(req: func.HttpRequest) -> func.HttpResponse:
    return handle_error_documents(req)


# Health check endpoint
@app.function_name(name="health")
@app.route(route="health", methods=["GET"])
def health(req: func.HttpRequest) -> func.HttpResponse:
    """
    Health check endpoint.

    Returns:
        HTTP response with health status.
    """
    return func.HttpResponse(
        json.dumps({"status": "healthy"}),
        status_code=200,
        mimetype="application/json",
    )
