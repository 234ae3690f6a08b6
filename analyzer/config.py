from __future__ import annotations

import os
from typing import FrozenSet, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict


MIB = 1024 * 1024

DEFAULT_IGNORED_DIRS: FrozenSet[str] = frozenset(
	{
		"node_modules",
		".git",
		"dist",
		"build",
		"coverage",
		".next",
		".nuxt",
		".svelte-kit",
		".cache",
		".turbo",
		".vite",
		"out",
	}
)


class AnalyzerConfig(BaseModel):
	"""Limits and locations for one analyzer process.

	Passed explicitly to the extractor, the job pipeline and the API so that
	tests and individual jobs can override any of them.
	"""

	model_config = ConfigDict(frozen=True)

	max_upload_bytes: int = 400 * MIB
	max_total_bytes: int = 1500 * MIB
	max_file_bytes: int = 30 * MIB
	max_files: int = 15000
	ignored_dirs: FrozenSet[str] = DEFAULT_IGNORED_DIRS
	cleanup_ttl_seconds: float = 60 * 60
	cleanup_interval_seconds: float = 60
	uploads_dir: str = "uploads"
	extracted_dir: str = "extracted"
	top_degree: int = 8
	log_level: str = "INFO"


def _env_int(name: str, default: int) -> int:
	value = os.getenv(name)
	return int(value) if value else default


def _env_float(name: str, default: float) -> float:
	value = os.getenv(name)
	return float(value) if value else default


def _env_set(name: str, default: FrozenSet[str]) -> FrozenSet[str]:
	value = os.getenv(name)
	if value is None:
		return default
	return frozenset(part.strip() for part in value.split(",") if part.strip())


def load_config(env_file: Optional[str] = None) -> AnalyzerConfig:
	"""Build the configuration from the environment (and a .env file, if any)."""
	load_dotenv(env_file)
	defaults = AnalyzerConfig()
	return AnalyzerConfig(
		max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", defaults.max_upload_bytes),
		max_total_bytes=_env_int("MAX_EXTRACTED_TOTAL_BYTES", defaults.max_total_bytes),
		max_file_bytes=_env_int("MAX_EXTRACTED_FILE_BYTES", defaults.max_file_bytes),
		max_files=_env_int("MAX_EXTRACTED_FILES", defaults.max_files),
		ignored_dirs=_env_set("IGNORED_DIRS", defaults.ignored_dirs),
		cleanup_ttl_seconds=_env_float("CLEANUP_TTL_SECONDS", defaults.cleanup_ttl_seconds),
		cleanup_interval_seconds=_env_float(
			"CLEANUP_INTERVAL_SECONDS", defaults.cleanup_interval_seconds
		),
		uploads_dir=os.getenv("UPLOADS_DIR", defaults.uploads_dir),
		extracted_dir=os.getenv("EXTRACTED_DIR", defaults.extracted_dir),
		top_degree=_env_int("TOP_DEGREE", defaults.top_degree),
		log_level=os.getenv("LOG_LEVEL", defaults.log_level),
	)
