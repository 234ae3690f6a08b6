from __future__ import annotations

import logging
import os
import shutil
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .config import AnalyzerConfig
from .extract import safe_extract_zip
from .fs_scan import scan_files
from .graph import build_import_graph
from .model import AnalysisResult
from .summarize import build_analysis_stats, summarize_result
from .tree import build_file_tree


logger = logging.getLogger(__name__)


def analyze_directory(root: str, config: AnalyzerConfig, job_id: Optional[str] = None) -> AnalysisResult:
	"""Tree, graph and stats for an already unpacked project directory."""
	paths = scan_files(root, config.ignored_dirs)
	tree = build_file_tree(paths)
	graph = build_import_graph(root, paths)
	stats = build_analysis_stats(paths, graph, config.top_degree)
	result = AnalysisResult(
		job_id=job_id,
		files_count=len(paths),
		stats=stats,
		tree=tree,
		graph=graph,
	)
	logger.info("Analyzed %s: %s", job_id or root, summarize_result(result))
	return result


def analyze_archive(
	archive_path: str, extract_dir: str, config: AnalyzerConfig, job_id: Optional[str] = None
) -> AnalysisResult:
	"""Extract a zip archive into ``extract_dir`` and analyze it.

	Any failure removes ``extract_dir`` before the error propagates, so a
	failed job never leaves partial output behind.
	"""
	if os.path.exists(extract_dir):
		raise FileExistsError(extract_dir)
	try:
		safe_extract_zip(Path(archive_path), Path(extract_dir), config)
		return analyze_directory(extract_dir, config, job_id)
	except BaseException:
		remove_path(extract_dir)
		raise


def remove_path(target: Optional[str]) -> bool:
	"""Delete a file or directory tree; missing paths are not an error."""
	if not target:
		return False
	try:
		if os.path.isdir(target) and not os.path.islink(target):
			shutil.rmtree(target)
		else:
			os.remove(target)
	except FileNotFoundError:
		return False
	return True


@dataclass
class CleanupJob:
	archive_path: str
	extract_dir: Optional[str]
	created_at: float


class CleanupRegistry:
	"""Deletes each job's archive and extraction directory once it is older than the TTL.

	``sweep`` can be called directly with an explicit ``now``; ``start`` runs it
	periodically on a background scheduler.
	"""

	JOB_ID = "cleanup_sweep"

	def __init__(self, ttl_seconds: float):
		self.ttl_seconds = ttl_seconds
		self._jobs: List[CleanupJob] = []
		self._lock = threading.Lock()
		self._scheduler: Optional[BackgroundScheduler] = None

	def register(self, archive_path: str, extract_dir: Optional[str], created_at: Optional[float] = None) -> CleanupJob:
		job = CleanupJob(
			archive_path=archive_path,
			extract_dir=extract_dir,
			created_at=time.time() if created_at is None else created_at,
		)
		with self._lock:
			self._jobs.append(job)
		return job

	@property
	def running(self) -> bool:
		return self._scheduler is not None

	def pending(self) -> List[CleanupJob]:
		with self._lock:
			return list(self._jobs)

	def sweep(self, now: Optional[float] = None) -> int:
		"""Remove every expired job's files; returns how many jobs were removed."""
		now = time.time() if now is None else now
		with self._lock:
			expired = [j for j in self._jobs if now - j.created_at >= self.ttl_seconds]
			self._jobs = [j for j in self._jobs if now - j.created_at < self.ttl_seconds]
		for job in expired:
			for target in (job.archive_path, job.extract_dir):
				try:
					remove_path(target)
				except OSError as e:
					logger.warning("Cleanup of %s failed: %s", target, e)
			logger.info("Cleaned up %s", job.extract_dir or job.archive_path)
		return len(expired)

	def start(self, interval_seconds: float) -> bool:
		if self._scheduler is not None:
			logger.warning("Cleanup scheduler already running")
			return False
		self._scheduler = BackgroundScheduler()
		self._scheduler.add_job(
			self.sweep,
			trigger=IntervalTrigger(seconds=interval_seconds),
			id=self.JOB_ID,
			replace_existing=True,
			max_instances=1,
			coalesce=True,
		)
		self._scheduler.start()
		logger.info("Cleanup scheduler started with %ss interval", interval_seconds)
		return True

	def stop(self) -> bool:
		if self._scheduler is None:
			return False
		self._scheduler.shutdown(wait=False)
		self._scheduler = None
		logger.info("Cleanup scheduler stopped")
		return True


def sweep_directory(extracted_dir: str, ttl_seconds: float, now: Optional[float] = None) -> int:
	"""Remove job directories under ``extracted_dir`` whose mtime is older than the TTL."""
	now = time.time() if now is None else now
	if not os.path.isdir(extracted_dir):
		return 0
	removed = 0
	for name in sorted(os.listdir(extracted_dir)):
		path = os.path.join(extracted_dir, name)
		try:
			age = now - os.path.getmtime(path)
		except FileNotFoundError:
			continue
		if age >= ttl_seconds and remove_path(path):
			logger.info("Cleaned up %s", path)
			removed += 1
	return removed
