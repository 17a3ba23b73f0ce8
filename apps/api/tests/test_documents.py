"""Tests for document upload, visibility, download, and storage backends."""

import io
import os

import pytest
from botocore.exceptions import ClientError
from httpx import AsyncClient
from starlette.datastructures import UploadFile

from volunteer_hub.core.config import settings
from volunteer_hub.db.models import Document
from volunteer_hub.services import document_service

PDF_BYTES = b"%PDF-1.4 volunteer handbook"


async def _upload(client: AsyncClient, title: str = "Handbook", **form) -> dict:
    filename = form.pop("filename", "handbook.pdf")
    content = form.pop("content", PDF_BYTES)
    content_type = form.pop("content_type", "application/pdf")
    response = await client.post(
        "/documents",
        data={"title": title, **form},
        files={"file": (filename, content, content_type)},
    )
    assert response.status_code == 201, response.text
    return response.json()["document"]


# =============================================================================
# Upload
# =============================================================================

@pytest.mark.asyncio
async def test_upload_document(admin_client: AsyncClient, db, local_storage, test_org):
    document = await _upload(admin_client, description="Start here", category="training")
    assert document["title"] == "Handbook"
    assert document["category"] == "training"
    assert document["visibility"] == "all"
    assert document["file_name"] == "handbook.pdf"
    assert document["mime_type"] == "application/pdf"
    assert document["file_size"] == len(PDF_BYTES)
    assert document["uploaded_by_name"] == "Alice Admin"

    row = db.query(Document).one()
    assert row.storage_key.startswith(f"org_{test_org.id}/")
    assert row.storage_key.endswith(".pdf")
    assert row.checksum
    assert (local_storage / row.storage_key).read_bytes() == PDF_BYTES


@pytest.mark.asyncio
async def test_upload_rejects_disallowed_type(admin_client: AsyncClient, db):
    response = await admin_client.post(
        "/documents",
        data={"title": "Archive"},
        files={"file": ("bundle.zip", b"PK\x03\x04", "application/zip")},
    )
    assert response.status_code == 400
    assert response.json()["message"] == (
        "Content type 'application/zip' not allowed. "
        "Allowed: PDF, Word, Excel, text, and image files"
    )
    assert db.query(Document).count() == 0


@pytest.mark.asyncio
async def test_upload_rejects_empty_file(admin_client: AsyncClient):
    response = await admin_client.post(
        "/documents",
        data={"title": "Nothing"},
        files={"file": ("empty.txt", b"", "text/plain")},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "File is empty"


@pytest.mark.asyncio
async def test_upload_rejects_oversized_file(admin_client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 1)
    response = await admin_client.post(
        "/documents",
        data={"title": "Huge"},
        files={"file": ("huge.txt", b"x" * (1024 * 1024 + 1), "text/plain")},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "File size exceeds 1 MB limit"


@pytest.mark.asyncio
async def test_upload_reads_at_most_one_byte_past_limit(admin_client: AsyncClient, db, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 1)
    limit = 1024 * 1024
    sizes = []
    original_read = UploadFile.read

    async def recording_read(self, size=-1):
        sizes.append(size)
        return await original_read(self, size)

    monkeypatch.setattr(UploadFile, "read", recording_read)

    response = await admin_client.post(
        "/documents",
        data={"title": "Huge"},
        files={"file": ("huge.txt", b"x" * (3 * limit), "text/plain")},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "File size exceeds 1 MB limit"
    assert sizes == [limit + 1]
    assert db.query(Document).count() == 0


@pytest.mark.asyncio
async def test_upload_requires_title(admin_client: AsyncClient):
    response = await admin_client.post(
        "/documents",
        data={"title": "   "},
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Title is required"


@pytest.mark.asyncio
async def test_volunteer_cannot_upload(volunteer_client: AsyncClient):
    response = await volunteer_client.post(
        "/documents",
        data={"title": "Mine"},
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 403


# =============================================================================
# Visibility and listing
# =============================================================================

@pytest.mark.asyncio
async def test_admin_only_documents_hidden_from_volunteers(
    admin_client: AsyncClient, volunteer_client: AsyncClient
):
    secret = await _upload(admin_client, "Board minutes", visibility="admin_only")
    await _upload(admin_client, "Shift guide", visibility="volunteers_only")
    await _upload(admin_client, "Welcome", visibility="all")

    admin_titles = {d["title"] for d in (await admin_client.get("/documents")).json()["documents"]}
    assert admin_titles == {"Board minutes", "Shift guide", "Welcome"}

    volunteer_titles = {
        d["title"] for d in (await volunteer_client.get("/documents")).json()["documents"]
    }
    assert volunteer_titles == {"Shift guide", "Welcome"}

    hidden = await volunteer_client.get(f"/documents/{secret['id']}")
    assert hidden.status_code == 404
    assert hidden.json()["message"] == "Document not found"
    download = await volunteer_client.get(f"/documents/{secret['id']}/download")
    assert download.status_code == 404


@pytest.mark.asyncio
async def test_pinned_documents_listed_first(admin_client: AsyncClient):
    await _upload(admin_client, "Older", is_pinned="true")
    await _upload(admin_client, "Newer")

    titles = [d["title"] for d in (await admin_client.get("/documents")).json()["documents"]]
    assert titles[0] == "Older"


@pytest.mark.asyncio
async def test_category_filter(admin_client: AsyncClient):
    await _upload(admin_client, "Policy", category="policy")
    await _upload(admin_client, "Form", category="forms")

    response = await admin_client.get("/documents", params={"category": "forms"})
    assert [d["title"] for d in response.json()["documents"]] == ["Form"]


@pytest.mark.asyncio
async def test_documents_are_tenant_scoped(
    admin_client: AsyncClient, client: AsyncClient, org_factory, member_factory
):
    from volunteer_hub.db.enums import Role
    from volunteer_hub.services import auth_service

    document = await _upload(admin_client)
    other = org_factory("Food Bank")
    outsider = member_factory(other, "boss@food.org", Role.NONPROFIT_ADMIN)
    headers = {"Authorization": f"Bearer {auth_service.issue_tokens(outsider).access_token}"}

    listing = await client.get("/documents", headers=headers)
    assert listing.json()["documents"] == []
    detail = await client.get(f"/documents/{document['id']}", headers=headers)
    assert detail.status_code == 404


# =============================================================================
# Download, update, delete
# =============================================================================

@pytest.mark.asyncio
async def test_download_returns_bytes(admin_client: AsyncClient, volunteer_client: AsyncClient):
    document = await _upload(admin_client, filename="Volunteer Handbook.pdf")

    response = await volunteer_client.get(f"/documents/{document['id']}/download")
    assert response.status_code == 200
    assert response.content == PDF_BYTES
    assert response.headers["content-type"] == "application/pdf"
    assert 'filename="Volunteer Handbook.pdf"' in response.headers["content-disposition"]


@pytest.mark.asyncio
async def test_download_missing_blob(admin_client: AsyncClient, db, local_storage):
    document = await _upload(admin_client)
    os.remove(local_storage / db.query(Document).one().storage_key)

    response = await admin_client.get(f"/documents/{document['id']}/download")
    assert response.status_code == 404
    assert response.json()["message"] == "File not found in storage"


@pytest.mark.asyncio
async def test_toggle_pin(admin_client: AsyncClient):
    document = await _upload(admin_client)

    response = await admin_client.put(f"/documents/{document['id']}", json={"is_pinned": True})
    assert response.status_code == 200
    assert response.json()["message"] == "Document updated successfully"
    assert response.json()["document"]["is_pinned"] is True

    empty = await admin_client.put(f"/documents/{document['id']}", json={})
    assert empty.status_code == 400


@pytest.mark.asyncio
async def test_delete_removes_row_and_blob(admin_client: AsyncClient, db, local_storage):
    document = await _upload(admin_client)
    blob = local_storage / db.query(Document).one().storage_key

    response = await admin_client.delete(f"/documents/{document['id']}")
    assert response.status_code == 200
    assert response.json()["message"] == "Document deleted successfully"
    assert db.query(Document).count() == 0
    assert not blob.exists()


# =============================================================================
# Storage backend
# =============================================================================

class _FakeS3:
    """Records calls; objects live in a dict."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.put_kwargs: dict = {}

    def put_object(self, **kwargs):
        self.put_kwargs = kwargs
        self.objects[kwargs["Key"]] = kwargs["Body"]

    def get_object(self, Bucket, Key):  # noqa: N803
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey"}}, "GetObject")
        return {"Body": io.BytesIO(self.objects[Key])}

    def delete_object(self, Bucket, Key):  # noqa: N803
        self.objects.pop(Key, None)


def test_s3_backend_round_trip(monkeypatch):
    fake = _FakeS3()
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "s3")
    monkeypatch.setattr(document_service, "_get_s3_client", lambda: fake)

    document_service.store_file("org_1/a.pdf", io.BytesIO(PDF_BYTES), "application/pdf")
    assert fake.put_kwargs["Bucket"] == settings.S3_BUCKET
    assert fake.put_kwargs["ContentType"] == "application/pdf"
    assert fake.put_kwargs["ContentLength"] == len(PDF_BYTES)
    assert document_service.read_file("org_1/a.pdf") == PDF_BYTES

    document_service.delete_file("org_1/a.pdf")
    with pytest.raises(FileNotFoundError):
        document_service.read_file("org_1/a.pdf")


def test_get_s3_client_uses_settings(monkeypatch):
    captured: dict[str, object] = {}

    def _fake_boto3_client(service_name, **kwargs):  # noqa: ANN001
        captured["service_name"] = service_name
        captured["kwargs"] = kwargs
        return object()

    monkeypatch.setattr(document_service.boto3, "client", _fake_boto3_client)
    monkeypatch.setattr(settings, "S3_REGION", "eu-west-1")
    monkeypatch.setattr(settings, "AWS_ACCESS_KEY_ID", "")

    document_service._get_s3_client()

    assert captured["service_name"] == "s3"
    assert captured["kwargs"]["region_name"] == "eu-west-1"
    assert captured["kwargs"]["aws_access_key_id"] is None


def test_local_storage_rejects_path_traversal():
    with pytest.raises(ValueError, match="Invalid storage key"):
        document_service.read_file("../../etc/passwd")


def test_storage_key_uses_mime_extension():
    key = document_service.build_storage_key("abc", "Report.PDF", "application/pdf")
    assert key.startswith("org_abc/")
    assert key.endswith(".pdf")
    assert document_service.build_storage_key("abc", "notes", "text/csv").endswith(".bin")
