"""
Tests for the Google Drive store using a fake Drive service.
"""

import httplib2
import pytest
from googleapiclient.errors import HttpError

from yarnstash.config import DriveConfig
from yarnstash.exceptions import NotFoundError, ObjectStoreError
from yarnstash.storage import OAuthTokens
from yarnstash.storage.google_drive import build_credentials, create_client, scrub_message

from conftest import ts


class Request:

    def __init__(self, result):
        self.result = result

    def execute(self):
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class FakeFiles:
    """Minimal stand-in for ``service.files()``."""

    def __init__(self, pages=None, delete_error=None):
        self.pages = pages or []
        self.delete_error = delete_error
        self.list_calls = []

    def list(self, **kwargs):
        self.list_calls.append(kwargs)
        return Request(self.pages[len(self.list_calls) - 1])

    def delete(self, fileId):
        return Request(self.delete_error or "")


class FakeService:

    def __init__(self, files):
        self._files = files

    def files(self):
        return self._files


def http_error(status):
    return HttpError(httplib2.Response({"status": status}), b'{"error": {"message": "nope"}}')


def store_with(files):
    store = create_client(OAuthTokens("access", "refresh"), DriveConfig(app_folder="Stash"))
    store._service = FakeService(files)
    return store


def test_scrub_message():
    message = "POST ?access_token=ya29.abc&alt=json failed, Authorization: Bearer ya29.xyz"
    scrubbed = scrub_message(message)
    assert "ya29" not in scrubbed
    assert "access_token=[redacted]" in scrubbed


def test_build_credentials():
    tokens = OAuthTokens("access", "refresh", expires_at=ts(2030, 1, 1))
    credentials = build_credentials(tokens, DriveConfig(client_id="id", client_secret="secret"))

    assert credentials.token == "access"
    assert credentials.refresh_token == "refresh"
    assert credentials.client_id == "id"
    assert credentials.expiry.tzinfo is None


class TestGoogleDriveStore:

    @pytest.mark.asyncio
    async def test_list_follows_pages(self):
        files = FakeFiles(pages=[
            {"files": [{"id": "a", "name": "a.json", "size": "12",
                        "createdTime": "2024-01-02T03:04:05.000Z"}],
             "nextPageToken": "next"},
            {"files": [{"id": "b", "name": "b.json"}]},
        ])
        store = store_with(files)

        objects = await store.list_objects("folder-1")

        assert [o.id for o in objects] == ["a", "b"]
        assert objects[0].size == 12
        assert objects[0].created_at == ts(2024, 1, 2, 3, 4, 5)
        assert files.list_calls[1]["pageToken"] == "next"
        assert store.app_folder_name == "Stash"

    @pytest.mark.asyncio
    async def test_delete_missing_is_not_found(self):
        store = store_with(FakeFiles(delete_error=http_error(404)))

        with pytest.raises(NotFoundError):
            await store.delete("gone")

    @pytest.mark.asyncio
    async def test_other_errors_are_object_store_errors(self):
        store = store_with(FakeFiles(delete_error=http_error(500)))

        with pytest.raises(ObjectStoreError) as exc_info:
            await store.delete("file-1")

        assert exc_info.value.context.operation == "delete"
