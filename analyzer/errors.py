from __future__ import annotations


class ArchiveError(Exception):
	"""Base class for failures that abort an analysis job."""

	message = "Invalid archive."

	def __init__(self, entry: str = "", detail: str = "") -> None:
		super().__init__(entry, detail)
		self.entry = entry
		self.detail = detail

	def __str__(self) -> str:
		if self.detail:
			return f"{self.detail}: {self.entry}"
		return self.entry or self.message


class UnsafePath(ArchiveError):
	"""An archive entry path escapes (or tries to escape) the extraction root."""

	message = "Invalid ZIP: unsafe file path found inside the archive."


class LimitExceeded(ArchiveError):
	"""File count, per-file size or total size cap breached."""

	message = "ZIP exceeds extraction limits (too many files or extracted size too large)."


class InvalidArchive(ArchiveError):
	message = "Invalid ZIP: the archive could not be read."
