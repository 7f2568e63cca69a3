"""
Tests for the HTTP handlers of the Function App.
"""

import base64
import json
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import azure.functions as func
import pytest

from knowledge_mining import function_app
from knowledge_mining.application import (
    DeleteDocumentCommand,
    DownloadDocumentQuery,
    GetDocumentsQuery,
    SendAbstractiveSummaryRequestCommand,
    SendExtractiveSummaryRequestCommand,
    SetDocumentTraitsCommand,
    UploadDocumentsCommand,
)
from knowledge_mining.config import Settings
from knowledge_mining.function_app import (
    handle_delete_document,
    handle_download_document,
    handle_error_documents,
    handle_list_documents,
    handle_set_document_traits,
    handle_summary_request,
    handle_upload_documents,
)
from knowledge_mining.models import (
    Document,
    DocumentTraits,
    GetDocumentsResponse,
    QueueReceipt,
)


def make_request(method="GET", body=None, params=None, route_params=None):
    """Build an HttpRequest with an optional JSON body."""
    return func.HttpRequest(
        method=method,
        url="/api/test",
        params=params or {},
        route_params=route_params or {},
        body=json.dumps(body).encode() if body is not None else b"",
    )


@pytest.fixture
def mediator():
    return MagicMock()


class TestDocumentHandlers:
    """Tests for document endpoints."""

    def test_list_documents(self, mediator):
        """Test listing with query parameters."""
        mediator.send.return_value = GetDocumentsResponse(
            documents=[Document(name="a.pdf")], next_page="token-2"
        )
        req = make_request(
            params={"prefix": "a", "page_size": "20", "continuation_token": "token-1"}
        )

        response = handle_list_documents(req, mediator)

        assert response.status_code == 200
        assert json.loads(response.get_body())["next_page"] == "token-2"
        mediator.send.assert_called_once_with(GetDocumentsQuery("a", 20, "token-1"))

    def test_list_documents_bad_page_size(self, mediator):
        """Test that a non-numeric page size is rejected."""
        response = handle_list_documents(make_request(params={"page_size": "ten"}), mediator)

        assert response.status_code == 400
        mediator.send.assert_not_called()

    def test_upload_documents(self, mediator):
        """Test uploading base64 content."""
        mediator.send.return_value = [Document(name="a.txt", tags={"k": "v"})]
        body = {
            "name": "a.txt",
            "content": base64.b64encode(b"hello").decode(),
            "content_type": "text/plain",
            "tags": {"k": "v"},
        }

        response = handle_upload_documents(make_request("POST", body), mediator)

        assert response.status_code == 201
        command = mediator.send.call_args.args[0]
        assert isinstance(command, UploadDocumentsCommand)
        assert command.documents[0].content.read() == b"hello"
        assert command.documents[0].content_type == "text/plain"

    def test_upload_documents_list(self, mediator):
        """Test uploading several documents at once."""
        mediator.send.return_value = []
        body = [
            {"name": "a.txt", "content": base64.b64encode(b"a").decode()},
            {"name": "b.txt", "content": base64.b64encode(b"b").decode()},
        ]

        handle_upload_documents(make_request("POST", body), mediator)

        command = mediator.send.call_args.args[0]
        assert [d.name for d in command.documents] == ["a.txt", "b.txt"]

    def test_upload_documents_invalid_base64(self, mediator):
        """Test that invalid content is rejected."""
        body = {"name": "a.txt", "content": "not base64!"}

        response = handle_upload_documents(make_request("POST", body), mediator)

        assert response.status_code == 400

    def test_upload_documents_missing_name(self, mediator):
        response = handle_upload_documents(make_request("POST", {"content": ""}), mediator)

        assert response.status_code == 400

    def test_upload_documents_invalid_json(self, mediator):
        req = func.HttpRequest(method="POST", url="/api/documents", body=b"{not json")

        response = handle_upload_documents(req, mediator)

        assert response.status_code == 400

    def test_download_document(self, mediator):
        """Test downloading raw bytes."""
        mediator.send.return_value = b"%PDF"
        req = make_request(route_params={"name": "reports/a.pdf"})

        response = handle_download_document(req, mediator)

        assert response.status_code == 200
        assert response.get_body() == b"%PDF"
        mediator.send.assert_called_once_with(DownloadDocumentQuery("reports/a.pdf"))

    def test_download_document_not_found(self, mediator):
        mediator.send.return_value = b""

        response = handle_download_document(make_request(route_params={"name": "a"}), mediator)

        assert response.status_code == 404

    def test_delete_document(self, mediator):
        response = handle_delete_document(
            make_request("DELETE", route_params={"name": "a.pdf"}), mediator
        )

        assert response.status_code == 204
        mediator.send.assert_called_once_with(DeleteDocumentCommand("a.pdf"))

    def test_set_document_traits(self, mediator):
        """Test merging tags only."""
        body = {"tags": {"k": "v"}, "traits": ["tags"]}
        req = make_request("PUT", body, route_params={"name": "a.pdf"})

        response = handle_set_document_traits(req, mediator)

        assert response.status_code == 204
        mediator.send.assert_called_once_with(
            SetDocumentTraitsCommand(
                Document(name="a.pdf", tags={"k": "v"}), DocumentTraits.TAGS
            )
        )

    def test_set_document_traits_defaults_to_all(self, mediator):
        req = make_request("PUT", {"metadata": {"m": "1"}}, route_params={"name": "a.pdf"})

        handle_set_document_traits(req, mediator)

        assert mediator.send.call_args.args[0].traits == DocumentTraits.ALL

    def test_set_document_traits_unknown_trait(self, mediator):
        req = make_request("PUT", {"traits": ["owner"]}, route_params={"name": "a.pdf"})

        response = handle_set_document_traits(req, mediator)

        assert response.status_code == 400

    def test_storage_error_returns_500(self, mediator):
        """Test that unexpected failures become a JSON 500."""
        mediator.send.side_effect = RuntimeError("storage down")

        response = handle_delete_document(
            make_request("DELETE", route_params={"name": "a.pdf"}), mediator
        )

        assert response.status_code == 500
        assert json.loads(response.get_body())["error"] == "storage down"


class TestSummaryHandlers:
    """Tests for summary request endpoints."""

    @pytest.mark.parametrize(
        "command_type",
        [SendExtractiveSummaryRequestCommand, SendAbstractiveSummaryRequestCommand],
    )
    def test_summary_request(self, mediator, command_type):
        """Test that a message is queued and its receipt returned."""
        mediator.send.return_value = QueueReceipt(
            message_id="message-1",
            insertion_time=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

        response = handle_summary_request(
            make_request("POST", {"message": "summarize a.pdf"}), command_type, mediator
        )

        assert response.status_code == 202
        assert json.loads(response.get_body())["message_id"] == "message-1"
        mediator.send.assert_called_once_with(command_type("summarize a.pdf"))

    def test_summary_request_missing_message(self, mediator):
        response = handle_summary_request(
            make_request("POST", {}), SendExtractiveSummaryRequestCommand, mediator
        )

        assert response.status_code == 400

    def test_summary_request_unconfigured_queue(self, mediator):
        """Test that a configuration error is a server error, not a bad request."""
        mediator.send.side_effect = ValueError("EXTRACTIVE_SUMMARY_REQUESTS_QUEUE is not configured")

        response = handle_summary_request(
            make_request("POST", {"message": "m"}), SendExtractiveSummaryRequestCommand, mediator
        )

        assert response.status_code == 500


class TestAdminHandlers:
    """Tests for admin endpoints."""

    def test_error_documents(self, mediator):
        mediator.send.return_value = GetDocumentsResponse(
            documents=[Document(name="error-documents/a.pdf")]
        )

        response = handle_error_documents(make_request(), mediator)

        assert response.status_code == 200
        assert json.loads(response.get_body()) == [
            {"name": "error-documents/a.pdf", "tags": None, "metadata": None}
        ]


class TestRequestValidation:
    """Tests for rejecting malformed tags, metadata and traits."""

    def test_upload_documents_non_string_tag_value(self, mediator):
        """Test that tag values must be strings."""
        body = {
            "name": "a.txt",
            "content": base64.b64encode(b"hi").decode(),
            "tags": {"year": 2024},
        }

        response = handle_upload_documents(make_request("POST", body), mediator)

        assert response.status_code == 400
        assert "tags" in json.loads(response.get_body())["error"]
        mediator.send.assert_not_called()

    def test_upload_documents_tags_not_object(self, mediator):
        body = {"name": "a.txt", "content": base64.b64encode(b"hi").decode(), "tags": ["a"]}

        response = handle_upload_documents(make_request("POST", body), mediator)

        assert response.status_code == 400
        mediator.send.assert_not_called()

    @pytest.mark.parametrize(
        "body",
        [
            {"tags": ["a", "b"], "traits": ["tags"]},
            {"tags": {"k": 1}, "traits": ["tags"]},
            {"metadata": "owner=alice", "traits": ["metadata"]},
            {"metadata": {"m": None}},
        ],
    )
    def test_set_document_traits_invalid_mappings(self, mediator, body):
        """Test that tags and metadata must map strings to strings."""
        req = make_request("PUT", body, route_params={"name": "a.pdf"})

        response = handle_set_document_traits(req, mediator)

        assert response.status_code == 400
        mediator.send.assert_not_called()

    @pytest.mark.parametrize("traits", [1, "tags", {"tags": True}, ["tags", 2]])
    def test_set_document_traits_invalid_traits(self, mediator, traits):
        """Test that traits must be a list of names."""
        req = make_request("PUT", {"traits": traits}, route_params={"name": "a.pdf"})

        response = handle_set_document_traits(req, mediator)

        assert response.status_code == 400
        mediator.send.assert_not_called()


class TestUnconfiguredApp:
    """Tests for handlers resolving the mediator from settings."""

    @pytest.fixture(autouse=True)
    def reset_mediator(self, monkeypatch):
        monkeypatch.setattr(function_app, "_mediator", None)

    @patch("knowledge_mining.function_app.get_settings")
    def test_missing_configuration_returns_500(self, mock_get_settings):
        """Test that missing configuration becomes a JSON 500."""
        mock_get_settings.return_value = Settings(_env_file=None, storage_connection_string="")

        response = handle_list_documents(make_request())

        assert response.status_code == 500
        assert "STORAGE_CONNECTION_STRING" in json.loads(response.get_body())["error"]

    @patch("knowledge_mining.function_app.build_mediator")
    @patch("knowledge_mining.function_app.get_settings")
    def test_mediator_built_once(self, mock_get_settings, mock_build_mediator):
        """Test that a configured app builds and reuses the mediator."""
        mock_get_settings.return_value = Settings(
            _env_file=None, storage_connection_string="storage"
        )
        mock_build_mediator.return_value.send.return_value = GetDocumentsResponse()

        handle_list_documents(make_request())
        response = handle_list_documents(make_request())

        assert response.status_code == 200
        mock_build_mediator.assert_called_once_with()
