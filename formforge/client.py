"""HTTP client for the FormForge API, used by builder drafts and fill sessions.

Every call is a single attempt: failures surface as :class:`ApiError` (or
:class:`UploadError` for rejected files) and retrying is left to the caller.
"""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Any

import requests

from formforge.config import UPLOAD_MAX_SIZE_BYTES
from formforge.schemas import FormRead, ResponseRead

REQUEST_TIMEOUT = 10


class ApiError(RuntimeError):
    def __init__(self, status_code: int | None, detail: Any) -> None:
        super().__init__(f"API error {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class UploadError(ApiError):
    pass


class FormForgeClient:
    def __init__(self, base_url: str, session: Any = None, timeout: float = REQUEST_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = path if path.startswith(("http://", "https://")) else f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise ApiError(None, str(exc)) from exc

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = response.text
            detail = (body.get("errors") or body.get("detail")) if isinstance(body, dict) else body
            raise ApiError(response.status_code, detail)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def list_forms(self) -> list[FormRead]:
        return [FormRead.model_validate(item) for item in self._request("GET", "/api/forms")]

    def get_form(self, form_id: str) -> FormRead:
        return FormRead.model_validate(self._request("GET", f"/api/forms/{form_id}"))

    def create_form(self, payload: dict[str, Any]) -> FormRead:
        return FormRead.model_validate(self._request("POST", "/api/forms", json=payload))

    def update_form(self, form_id: str, payload: dict[str, Any]) -> FormRead:
        return FormRead.model_validate(self._request("PUT", f"/api/forms/{form_id}", json=payload))

    def delete_form(self, form_id: str) -> None:
        self._request("DELETE", f"/api/forms/{form_id}")

    def get_shared_form(self, share_url: str) -> FormRead:
        return FormRead.model_validate(self._request("GET", f"/api/share/{share_url}"))

    def submit_response(self, form_id: str, answers: dict[str, Any], email: str | None = None) -> ResponseRead:
        body: dict[str, Any] = {"answers": answers}
        if email:
            body["email"] = email
        return ResponseRead.model_validate(self._request("POST", f"/api/forms/{form_id}/responses", json=body))

    def list_responses(self, form_id: str) -> list[ResponseRead]:
        return [ResponseRead.model_validate(item) for item in self._request("GET", f"/api/forms/{form_id}/responses")]

    def get_upload_url(self) -> str:
        return str(self._request("POST", "/api/objects/upload")["uploadURL"])

    def upload_image(self, path: str | Path, max_size: int = UPLOAD_MAX_SIZE_BYTES) -> str:
        """Upload an image file and return its public URL."""
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        if not content_type or not content_type.startswith("image/"):
            raise UploadError(None, f"Not an image file: {path.name}")
        try:
            size = path.stat().st_size
        except OSError as exc:
            raise UploadError(None, f"Cannot read {path.name}: {exc}") from exc
        if size > max_size:
            raise UploadError(None, f"File is too large. Maximum size is {max_size // (1024 * 1024)}MB")

        upload_url = self.get_upload_url()
        with path.open("rb") as fp:
            try:
                result = self._request("POST", upload_url, files={"file": (path.name, fp, content_type)})
            except ApiError as exc:
                raise UploadError(exc.status_code, exc.detail) from exc
        if not result or not result.get("success") or not result.get("url"):
            raise UploadError(None, "Upload failed: missing url in response")
        return str(result["url"])
