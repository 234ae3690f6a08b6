from __future__ import annotations

import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from analyzer.config import AnalyzerConfig, load_config
from analyzer.errors import ArchiveError, InvalidArchive, LimitExceeded, UnsafePath
from analyzer.jobs import CleanupRegistry, analyze_archive, remove_path
from analyzer.log import configure_logging
from analyzer.model import UploadResponse


logger = logging.getLogger(__name__)

SERVICE_NAME = "codebase-explorer-api"
ALLOWED_ARCHIVE_EXTENSIONS = (".zip", ".rar", ".7z")
UPLOAD_CHUNK_SIZE = 1024 * 1024

UNANALYZED_NOTE = (
	"RAR/7Z were saved on the server. Currently, analysis (tree/graph) is enabled only for ZIP."
)

ARCHIVE_ERROR_STATUS = {
	UnsafePath: 400,
	InvalidArchive: 400,
	LimitExceeded: 413,
}


@lru_cache
def get_config() -> AnalyzerConfig:
	return load_config()


@lru_cache
def get_cleanup_registry() -> CleanupRegistry:
	return CleanupRegistry(get_config().cleanup_ttl_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
	config = get_config()
	configure_logging(config.log_level)
	os.makedirs(config.uploads_dir, exist_ok=True)
	os.makedirs(config.extracted_dir, exist_ok=True)
	registry = get_cleanup_registry()
	registry.start(config.cleanup_interval_seconds)
	try:
		yield
	finally:
		registry.stop()


app = FastAPI(title="Codebase Explorer API", lifespan=lifespan)

app.add_middleware(
	CORSMiddleware,
	allow_origins=["*"],
	allow_credentials=False,
	allow_methods=["*"],
	allow_headers=["*"],
)


def _error(status_code: int, message: str) -> JSONResponse:
	return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


@app.exception_handler(ArchiveError)
async def archive_error_handler(request: Request, exc: ArchiveError) -> JSONResponse:
	return _error(ARCHIVE_ERROR_STATUS.get(type(exc), 400), exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
	return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
	logger.exception("Unhandled error on %s", request.url.path)
	return _error(500, "Server error")


@app.get("/health")
def health() -> dict:
	return {"ok": True, "service": SERVICE_NAME}


def store_upload(upload: UploadFile, destination: str, max_bytes: int) -> int:
	"""Copy an upload to disk, deleting it and failing with 413 once it passes ``max_bytes``."""
	written = 0
	with open(destination, "xb") as out:
		while True:
			chunk = upload.file.read(UPLOAD_CHUNK_SIZE)
			if not chunk:
				break
			written += len(chunk)
			if written > max_bytes:
				break
			out.write(chunk)
	if written > max_bytes:
		remove_path(destination)
		raise HTTPException(
			status_code=413, detail=f"File is too large (limit: {max_bytes // (1024 * 1024)}MB)."
		)
	return written


@app.post("/upload", response_model=UploadResponse, response_model_exclude_none=True)
def upload(
	archive: Optional[UploadFile] = File(None),
	config: AnalyzerConfig = Depends(get_config),
	cleanup: CleanupRegistry = Depends(get_cleanup_registry),
) -> UploadResponse:
	if archive is None or not archive.filename:
		raise HTTPException(status_code=400, detail="No file uploaded")

	original_name = os.path.basename(archive.filename.replace("\\", "/"))
	ext = os.path.splitext(original_name)[1].lower()
	if ext not in ALLOWED_ARCHIVE_EXTENSIONS:
		raise HTTPException(status_code=400, detail="Only ZIP / RAR / 7Z files are allowed.")

	os.makedirs(config.uploads_dir, exist_ok=True)
	os.makedirs(config.extracted_dir, exist_ok=True)
	job_id = str(uuid.uuid4())
	stored_as = f"{int(time.time() * 1000)}-{job_id}-{original_name}"
	archive_path = os.path.join(config.uploads_dir, stored_as)
	size = store_upload(archive, archive_path, config.max_upload_bytes)

	response = UploadResponse(original_name=original_name, size=size, stored_as=stored_as, ext=ext)

	if ext != ".zip":
		cleanup.register(archive_path, None)
		response.note = UNANALYZED_NOTE
		return response

	extract_dir = os.path.join(config.extracted_dir, job_id)
	try:
		result = analyze_archive(archive_path, extract_dir, config, job_id)
	except BaseException:
		remove_path(archive_path)
		raise
	cleanup.register(archive_path, extract_dir)

	response.job_id = result.job_id
	response.files_count = result.files_count
	response.stats = result.stats
	response.tree = result.tree
	response.graph = result.graph
	return response


def create_app() -> FastAPI:
	return app
