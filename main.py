from __future__ import annotations

import tempfile
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, Any, AsyncIterator
from uuid import uuid4

from fastapi import Depends, FastAPI, File, HTTPException, Request, Response, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from formforge.answers import AnswerValidationError, ensure_valid_answers
from formforge.config import (
    ALLOWED_ORIGINS,
    DB_AUTO_CREATE,
    STORAGE_BACKEND,
    UPLOAD_MAX_SIZE_BYTES,
    UPLOAD_PUBLIC_PREFIX,
)
from formforge.db import check_db_connection, create_schema
from formforge.deps import get_form_storage, get_object_storage
from formforge.observability import get_logger, log_event, log_warning
from formforge.schemas import (
    FormCreate,
    FormRead,
    FormUpdate,
    ResponseCreate,
    ResponseRead,
    UploadResponse,
    UploadUrlResponse,
    ValidationErrorItem,
    ValidationErrorResponse,
)
from formforge.storage import FormNotFoundError, FormStorage, MemoryFormStorage, ObjectStorage

logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if STORAGE_BACKEND == "memory":
        app.state.memory_storage = MemoryFormStorage()
    elif DB_AUTO_CREATE:
        await create_schema()
    yield


app = FastAPI(title="FormForge API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID"],
)

FormStorageDep = Annotated[FormStorage, Depends(get_form_storage)]
ObjectStorageDep = Annotated[ObjectStorage, Depends(get_object_storage)]

_UPLOAD_CHUNK_BYTES = 1024 * 1024


def _validation_body(errors: list[dict[str, Any]]) -> dict[str, Any]:
    body = ValidationErrorResponse(
        errors=[
            ValidationErrorItem(
                loc=[part if isinstance(part, int) else str(part) for part in error.get("loc", ())],
                msg=str(error.get("msg", "")),
                type=str(error.get("type", "")),
            )
            for error in errors
        ]
    )
    return body.model_dump()


VALIDATION_RESPONSES: dict[int | str, dict[str, Any]] = {400: {"model": ValidationErrorResponse}}


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_validation_body(list(exc.errors())))


@app.exception_handler(AnswerValidationError)
async def answer_validation_handler(request: Request, exc: AnswerValidationError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_validation_body(exc.errors))


@app.exception_handler(SQLAlchemyError)
async def persistence_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "persistence.failed",
        exc_info=exc,
        extra={"extra_data": {"path": request.url.path, "request_id": getattr(request.state, "request_id", None)}},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Storage operation failed"},
    )


@app.middleware("http")
async def add_request_id_and_logging(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid4().hex
    request.state.request_id = request_id
    started_at = time.monotonic()
    response = None

    try:
        response = await call_next(request)
        return response
    finally:
        duration_ms = int((time.monotonic() - started_at) * 1000)
        if response is not None:
            response.headers["X-Request-ID"] = request_id
            status_code = response.status_code
        else:
            status_code = 500
        log_event(
            logger,
            "request.completed",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=duration_ms,
            client=(request.client.host if request.client else "unknown"),
        )


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/health/db")
async def health_db() -> JSONResponse:
    if STORAGE_BACKEND == "memory":
        return JSONResponse(content={"db": "memory"}, status_code=status.HTTP_200_OK)
    ok = await check_db_connection()
    if ok:
        return JSONResponse(content={"db": "ok"}, status_code=status.HTTP_200_OK)
    return JSONResponse(content={"db": "error"}, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


@app.get("/api/forms", response_model=list[FormRead])
async def list_forms(storage: FormStorageDep) -> list[FormRead]:
    return await storage.list_forms()


@app.get("/api/forms/{form_id}", response_model=FormRead)
async def get_form(form_id: str, storage: FormStorageDep) -> FormRead:
    form = await storage.get_form(form_id)
    if form is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found")
    return form


@app.post("/api/forms", response_model=FormRead, status_code=status.HTTP_201_CREATED, responses=VALIDATION_RESPONSES)
async def create_form(payload: FormCreate, storage: FormStorageDep) -> FormRead:
    form = await storage.create_form(payload)
    log_event(
        logger,
        "form.created",
        form_id=form.id,
        question_count=len(form.questions),
        is_published=form.is_published,
    )
    return form


@app.put("/api/forms/{form_id}", response_model=FormRead, responses=VALIDATION_RESPONSES)
async def update_form(form_id: str, payload: FormUpdate, storage: FormStorageDep) -> FormRead:
    before = await storage.get_form(form_id)
    if before is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found")

    form = await storage.update_form(form_id, payload)
    if form is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found")

    log_event(logger, "form.updated", form_id=form.id, fields=sorted(payload.model_fields_set))
    if before.share_url is None and form.share_url is not None:
        log_event(logger, "form.published", form_id=form.id, share_url=form.share_url)
    return form


@app.delete("/api/forms/{form_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_form(form_id: str, storage: FormStorageDep) -> Response:
    deleted = await storage.delete_form(form_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found")
    log_event(logger, "form.deleted", form_id=form_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/api/share/{share_url}", response_model=FormRead)
async def get_shared_form(share_url: str, storage: FormStorageDep) -> FormRead:
    form = await storage.get_form_by_share_url(share_url)
    if form is None or not form.is_published:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found or not published")
    return form


@app.post(
    "/api/forms/{form_id}/responses",
    response_model=ResponseRead,
    status_code=status.HTTP_201_CREATED,
    responses=VALIDATION_RESPONSES,
)
async def submit_response(form_id: str, payload: ResponseCreate, storage: FormStorageDep) -> ResponseRead:
    form = await storage.get_form(form_id)
    if form is None or not form.is_published:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found or not published")

    ensure_valid_answers(form.questions, payload.answers)
    try:
        response = await storage.create_response(form_id, payload)
    except FormNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found or not published") from exc

    log_event(
        logger,
        "response.created",
        form_id=form_id,
        response_id=response.id,
        answered_questions=len(response.answers),
    )
    return response


@app.get("/api/forms/{form_id}/responses", response_model=list[ResponseRead])
async def list_responses(form_id: str, storage: FormStorageDep) -> list[ResponseRead]:
    form = await storage.get_form(form_id)
    if form is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found")
    return await storage.list_responses(form_id)


@app.post("/api/objects/upload", response_model=UploadUrlResponse)
def get_upload_url(objects: ObjectStorageDep) -> UploadUrlResponse:
    return UploadUrlResponse(uploadURL=objects.get_upload_url())


@app.post("/api/upload", response_model=UploadResponse)
async def upload_file(objects: ObjectStorageDep, file: UploadFile | None = File(None)) -> UploadResponse:
    if file is None or not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")
    if not (file.content_type or "").startswith("image/"):
        log_warning(logger, "upload.rejected", reason="content_type", content_type=file.content_type)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only image files are allowed")

    total_size = 0
    with tempfile.NamedTemporaryFile(delete=False) as temp_file:
        temp_path = Path(temp_file.name)
        while True:
            chunk = await file.read(_UPLOAD_CHUNK_BYTES)
            if not chunk:
                break
            total_size += len(chunk)
            if total_size > UPLOAD_MAX_SIZE_BYTES:
                temp_file.close()
                temp_path.unlink(missing_ok=True)
                log_warning(logger, "upload.rejected", reason="size", size_bytes=total_size)
                raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="File too large")
            temp_file.write(chunk)

    try:
        key = objects.save_object(temp_path, file.filename)
    finally:
        temp_path.unlink(missing_ok=True)

    log_event(logger, "upload.stored", key=key, size_bytes=total_size, content_type=file.content_type)
    return UploadResponse(
        url=f"{UPLOAD_PUBLIC_PREFIX}/{key}",
        filename=key,
        original_name=file.filename,
    )


@app.get("/public-objects/{object_path:path}")
def get_public_object(object_path: str, objects: ObjectStorageDep) -> FileResponse:
    try:
        path = objects.resolve_object(object_path)
    except (ValueError, FileNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found") from exc
    return FileResponse(path)
