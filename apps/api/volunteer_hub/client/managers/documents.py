"""Document manager."""

from __future__ import annotations

import contextlib
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterator

from volunteer_hub.client.errors import ValidationFailure
from volunteer_hub.client.gateway import ApiClient
from volunteer_hub.utils.uploads import check_upload, guess_content_type, preview_mode


def validate_upload(filename: str, content_type: str | None, size: int) -> str:
    """
    Check a file before any request is sent. Returns the content type.

    Raises:
        ValidationFailure: Empty, too large, or a type outside the allow-list
    """
    content_type = content_type or guess_content_type(filename)
    error = check_upload(content_type, size)
    if error:
        raise ValidationFailure(error)
    return content_type


class DocumentManager:
    def __init__(self, api: ApiClient):
        self.api = api

    def list(self, category: str | None = None) -> list[dict]:
        return self.api.get("/documents", params={"category": category})["documents"]

    def get(self, document_id) -> dict:
        return self.api.get(f"/documents/{document_id}")["document"]

    def upload(
        self,
        path: Path | str,
        title: str,
        description: str | None = None,
        category: str = "general",
        visibility: str = "all",
        is_pinned: bool = False,
        content_type: str | None = None,
    ) -> dict:
        path = Path(path)
        content = path.read_bytes()
        content_type = validate_upload(path.name, content_type, len(content))
        if not title or not title.strip():
            raise ValidationFailure("Title is required")
        data = {
            "title": title,
            "category": category,
            "visibility": visibility,
            "is_pinned": "true" if is_pinned else "false",
        }
        if description:
            data["description"] = description
        body = self.api.post(
            "/documents",
            data=data,
            files={"file": (path.name, content, content_type)},
        )
        return body["document"]

    def update(self, document_id, **fields) -> dict:
        return self.api.put(f"/documents/{document_id}", json=fields)["document"]

    def toggle_pin(self, document: dict) -> dict:
        return self.update(document["id"], is_pinned=not document.get("is_pinned"))

    def delete(self, document_id) -> dict:
        return self.api.delete(f"/documents/{document_id}")

    def _fetch(self, document: dict) -> bytes:
        return self.api.download(f"/documents/{document['id']}/download").content

    def download(self, document: dict, directory: Path | str) -> Path:
        """
        Save the document under its original name.

        Bytes land in a temp file in the same directory first; the temp file
        never outlives the call.
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / Path(document["file_name"]).name
        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=".download-")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(self._fetch(document))
            os.replace(tmp_name, target)
        finally:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
        return target

    @staticmethod
    def preview_mode(mime_type: str | None) -> str:
        return preview_mode(mime_type)

    @contextlib.contextmanager
    def preview(self, document: dict) -> Iterator[Path]:
        """Yield a temporary copy of the document; it is deleted on exit."""
        tmp_dir = tempfile.mkdtemp(prefix="volunteer-hub-preview-")
        try:
            path = Path(tmp_dir) / Path(document["file_name"]).name
            path.write_bytes(self._fetch(document))
            yield path
        finally:
            shutil.rmtree(tmp_dir, ignore_errors=True)
