"""Safe extraction of untrusted archives.

Every non-directory entry goes through, in order: the file count check, the
declared size checks, the path containment checks, and finally a streaming
copy that counts the bytes actually written. Declared sizes are only a fast
pre-check; the streamed byte count is authoritative.
"""

from __future__ import annotations

import logging
import posixpath
import re
import zipfile
import zlib
from pathlib import Path
from typing import Iterable, Iterator

from .config import AnalyzerConfig
from .errors import InvalidArchive, LimitExceeded, UnsafePath
from .model import ArchiveEntry


logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

_DRIVE_RE = re.compile(r"^[A-Za-z]:")


def normalize_entry_path(raw: str) -> str:
	"""Return the canonical relative form of an entry path or raise UnsafePath."""
	normalized = posixpath.normpath(raw.replace("\\", "/"))
	if normalized in ("", "."):
		raise UnsafePath(raw, "empty entry path")
	if posixpath.isabs(normalized) or _DRIVE_RE.match(normalized):
		raise UnsafePath(raw, "absolute entry path")
	if ".." in normalized.split("/"):
		raise UnsafePath(raw, "parent directory segment")
	return normalized


def is_within(root: Path, target: Path) -> bool:
	return target == root or root in target.parents


def resolve_destination(root: Path, raw: str) -> Path:
	"""Join an entry path with the root, checking containment twice.

	The lexical check in ``normalize_entry_path`` and the resolved-path check
	here are independent; both must pass.
	"""
	normalized = normalize_entry_path(raw)
	resolved_root = root.resolve()
	destination = (resolved_root / normalized).resolve()
	if not is_within(resolved_root, destination) or destination == resolved_root:
		raise UnsafePath(raw, "entry escapes extraction root")
	return destination


def safe_extract(entries: Iterable[ArchiveEntry], target_root: Path, config: AnalyzerConfig) -> int:
	"""Extract ``entries`` under ``target_root`` and return the number of files written.

	The root must not exist yet. On failure, files already written are left
	in place; the caller removes the whole root.
	"""
	target_root = Path(target_root)
	target_root.mkdir(parents=True, exist_ok=False)

	files_count = 0
	declared_total = 0
	written_total = 0

	for entry in entries:
		if entry.is_dir:
			continue

		files_count += 1
		if files_count > config.max_files:
			logger.warning("Archive has more than %d files", config.max_files)
			raise LimitExceeded(entry.path, "too many files")

		declared = entry.size or 0
		if declared > config.max_file_bytes:
			logger.warning("Entry %r declares %d bytes", entry.path, declared)
			raise LimitExceeded(entry.path, "declared file size over limit")
		declared_total += declared
		if declared_total > config.max_total_bytes:
			logger.warning("Declared archive size over %d bytes", config.max_total_bytes)
			raise LimitExceeded(entry.path, "declared total size over limit")

		try:
			destination = resolve_destination(target_root, entry.path)
		except UnsafePath:
			logger.warning("Rejected unsafe archive entry %r", entry.path)
			raise

		destination.parent.mkdir(parents=True, exist_ok=True)
		written_total += _stream_entry(entry, destination, config, written_total)

	logger.debug("Extracted %d files (%d bytes) into %s", files_count, written_total, target_root)
	return files_count


def _stream_entry(entry: ArchiveEntry, destination: Path, config: AnalyzerConfig, written_before: int) -> int:
	written = 0
	with entry.open() as src, open(destination, "wb") as out:
		while True:
			chunk = src.read(CHUNK_SIZE)
			if not chunk:
				break
			written += len(chunk)
			if written > config.max_file_bytes:
				logger.warning("Entry %r streamed past %d bytes", entry.path, config.max_file_bytes)
				raise LimitExceeded(entry.path, "file size over limit")
			if written_before + written > config.max_total_bytes:
				logger.warning("Extracted size over %d bytes", config.max_total_bytes)
				raise LimitExceeded(entry.path, "total size over limit")
			out.write(chunk)
	return written


def iter_zip_entries(archive: zipfile.ZipFile) -> Iterator[ArchiveEntry]:
	for info in archive.infolist():
		yield ArchiveEntry(
			path=info.filename,
			size=info.file_size,
			is_dir=info.is_dir(),
			open=lambda info=info: archive.open(info),
		)


def safe_extract_zip(archive_path: Path, target_root: Path, config: AnalyzerConfig) -> int:
	try:
		with zipfile.ZipFile(archive_path) as archive:
			return safe_extract(iter_zip_entries(archive), target_root, config)
	except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError) as e:
		logger.warning("Could not read archive %s: %s", archive_path, e)
		raise InvalidArchive(str(archive_path), str(e)) from e
