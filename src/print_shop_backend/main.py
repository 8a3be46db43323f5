from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from omegaconf import DictConfig, OmegaConf
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import AdminAuthenticator, StaticCredentialVerifier
from .configuration import is_production, make_runtime_config
from .errors import BadRequestError, PayloadTooLargeError, PrintShopError, StoreError
from .file_store import FileStore
from .logging_config import setup_logging
from .models import (
    ErrorResponse,
    FileRecord,
    HealthStatus,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    OrderRecord,
    StatusUpdate,
)
from .order_store import OrderStore
from .utils import ensure_directory, utc_timestamp

logger = logging.getLogger(__name__)

UPLOAD_CHUNK_SIZE = 1024 * 1024

NOT_FOUND = {404: {"model": ErrorResponse}}


def get_order_store(request: Request) -> OrderStore:
    return request.app.state.order_store


def get_file_store(request: Request) -> FileStore:
    return request.app.state.file_store


def get_authenticator(request: Request) -> AdminAuthenticator:
    return request.app.state.authenticator


async def _handle_print_shop_error(request: Request, exc: PrintShopError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc.__cause__ or exc)
    else:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Server error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@contextmanager
def _failure_message(message: str) -> Iterator[None]:
    """Re-label store failures with the message clients expect from the calling route."""
    try:
        yield
    except StoreError as exc:
        raise StoreError(message) from exc


async def _store_upload(upload: UploadFile, store: FileStore) -> FileRecord:
    filename = upload.filename or "document"
    blob_name, destination = store.new_blob_path(filename)
    size = 0
    try:
        with destination.open("wb") as buffer:
            while chunk := await upload.read(UPLOAD_CHUNK_SIZE):
                size += len(chunk)
                if size > store.max_upload_bytes:
                    raise PayloadTooLargeError(f"{filename} exceeds the {store.max_upload_bytes} byte upload limit")
                buffer.write(chunk)
    except PayloadTooLargeError:
        store.discard_blob(destination)
        raise
    except OSError as exc:
        store.discard_blob(destination)
        raise StoreError("Failed to upload files") from exc
    finally:
        await upload.close()

    return store.build_record(filename, size, upload.content_type or "application/octet-stream", blob_name)


def _register_api_routes(app: FastAPI) -> None:
    @app.get("/api/health", response_model=HealthStatus)
    def healthcheck() -> HealthStatus:
        return HealthStatus(status="OK", timestamp=utc_timestamp())

    @app.get("/api/orders", response_model=List[OrderRecord])
    def list_orders(store: OrderStore = Depends(get_order_store)) -> List[Dict[str, Any]]:
        with _failure_message("Failed to read orders"):
            return store.list_orders()

    @app.post("/api/orders", response_model=OrderRecord)
    def create_order(payload: Dict[str, Any], store: OrderStore = Depends(get_order_store)) -> Dict[str, Any]:
        with _failure_message("Failed to create order"):
            return store.create_order(payload)

    @app.get("/api/orders/{order_id}", response_model=OrderRecord, responses=NOT_FOUND)
    def get_order(order_id: str, store: OrderStore = Depends(get_order_store)) -> Dict[str, Any]:
        with _failure_message("Failed to find order"):
            return store.get_order(order_id)

    @app.put("/api/orders/{order_id}", response_model=OrderRecord, responses=NOT_FOUND)
    def update_order_status(
        order_id: str,
        update: StatusUpdate,
        store: OrderStore = Depends(get_order_store),
    ) -> Dict[str, Any]:
        with _failure_message("Failed to update order"):
            return store.update_status(order_id, update.status)

    @app.delete("/api/orders", response_model=MessageResponse)
    def delete_orders(store: OrderStore = Depends(get_order_store)) -> MessageResponse:
        with _failure_message("Failed to delete orders"):
            store.delete_all()
        return MessageResponse(message="All orders deleted")

    @app.post("/api/upload", response_model=List[FileRecord], responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}})
    async def upload_files(
        files: Optional[List[UploadFile]] = File(None),
        store: FileStore = Depends(get_file_store),
    ) -> List[Dict[str, Any]]:
        uploads = [upload for upload in files or [] if upload.filename]
        logger.info(f"Upload request received: {len(uploads)} files")
        if not uploads:
            raise BadRequestError("No files uploaded")

        records: List[FileRecord] = []
        try:
            for upload in uploads:
                records.append(await _store_upload(upload, store))
        except PrintShopError:
            # Blobs already written for this request have no metadata yet
            for record in records:
                store.discard_blob(Path(record.server_path))
            raise

        with _failure_message("Failed to upload files"):
            return store.add_records(records)

    @app.get("/api/files", response_model=List[FileRecord])
    def list_files(store: FileStore = Depends(get_file_store)) -> List[Dict[str, Any]]:
        with _failure_message("Failed to read files"):
            return store.list_files()

    @app.delete("/api/files", response_model=MessageResponse)
    def delete_files(store: FileStore = Depends(get_file_store)) -> MessageResponse:
        with _failure_message("Failed to delete files"):
            store.delete_all()
        return MessageResponse(message="All files deleted")

    @app.post("/api/admin/login", response_model=LoginResponse, responses={401: {"model": ErrorResponse}})
    def admin_login(
        credentials: LoginRequest,
        authenticator: AdminAuthenticator = Depends(get_authenticator),
    ) -> LoginResponse:
        return authenticator.login(credentials.username, credentials.password)


def _register_frontend(app: FastAPI, static_dir: Path) -> None:
    """Serve the built front-end and fall back to index.html for client-side routes."""
    base_path = static_dir.resolve()

    @app.get("/{full_path:path}", include_in_schema=False)
    def frontend(full_path: str) -> FileResponse:
        file_path = (base_path / full_path).resolve()
        if not file_path.is_relative_to(base_path):
            raise HTTPException(status_code=400, detail="Invalid path request")
        if full_path and file_path.is_file():
            return FileResponse(file_path)
        index_path = base_path / "index.html"
        if not index_path.is_file():
            raise HTTPException(status_code=404, detail="Front-end build not found")
        return FileResponse(index_path)


def create_app(config: Optional[DictConfig] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        config: Effective configuration; defaults to ``make_runtime_config()``

    Returns:
        A FastAPI app with its stores attached to ``app.state``
    """
    config = config if config is not None else make_runtime_config()
    storage = config.storage
    data_dir = ensure_directory(Path(storage.data_dir))
    upload_dir = ensure_directory(Path(storage.upload_dir))
    production = is_production(config)

    app = FastAPI(title="Print Shop API", version="0.1.0")
    app.state.config = config
    app.state.order_store = OrderStore(data_dir / storage.orders_file)
    app.state.file_store = FileStore(
        metadata_path=data_dir / storage.files_file,
        upload_root=upload_dir,
        max_upload_bytes=int(storage.max_upload_bytes),
    )
    app.state.authenticator = AdminAuthenticator(
        StaticCredentialVerifier(config.admin.username, config.admin.password),
        token=config.admin.token,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(OmegaConf.to_container(config.server.cors_origins)),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(PrintShopError, _handle_print_shop_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(Exception, _handle_unexpected_error)

    _register_api_routes(app)
    app.mount("/uploads", StaticFiles(directory=upload_dir), name="uploads")
    if production:
        _register_frontend(app, Path(config.server.static_dir))

    logger.info(f"Environment: {'production' if production else 'development'}")
    logger.info(f"Data directory: {data_dir.resolve()}")
    logger.info(f"Uploads directory: {upload_dir.resolve()}")
    return app


_config = make_runtime_config()
setup_logging(_config.logging.level)
app = create_app(_config)


def run() -> None:
    config: DictConfig = app.state.config
    logger.info(f"Server running on port {config.server.port}")
    uvicorn.run(app, host=str(config.server.host), port=int(config.server.port))


if __name__ == "__main__":
    run()
