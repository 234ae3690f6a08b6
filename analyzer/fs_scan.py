from __future__ import annotations

import os
import posixpath
from typing import AbstractSet, List

from .config import DEFAULT_IGNORED_DIRS


def to_rel_path(root: str, file_path: str) -> str:
	return os.path.relpath(file_path, root).replace(os.sep, "/")


def file_extension(rel_path: str) -> str:
	"""Lower-cased extension of a project path, empty for extensionless names."""
	return posixpath.splitext(rel_path)[1].lower()


def scan_files(root: str, ignored_dirs: AbstractSet[str] = DEFAULT_IGNORED_DIRS) -> List[str]:
	"""List project-relative POSIX paths of regular files under ``root``.

	Symlinks are never followed or listed. Walk order is sorted so the result
	is deterministic.
	"""
	files: List[str] = []
	for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
		dirnames[:] = sorted(
			d for d in dirnames
			if d not in ignored_dirs and not os.path.islink(os.path.join(dirpath, d))
		)
		for filename in sorted(filenames):
			path = os.path.join(dirpath, filename)
			if os.path.islink(path) or not os.path.isfile(path):
				continue
			files.append(to_rel_path(root, path))
	return files
