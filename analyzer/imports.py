"""Lexical extraction and resolution of local JS/TS import specifiers.

This is a best-effort regex scan, not a parser. It recognizes
``import ... from "x"``, ``import "x"`` and ``require("x")`` with a quoted
literal. Dynamic ``import()``, template literals and unusually formatted
multi-line import lists may be missed.
"""

from __future__ import annotations

import posixpath
import re
from typing import AbstractSet, Dict, List, Optional, Tuple


CODE_EXTENSIONS: Tuple[str, ...] = (".js", ".jsx", ".ts", ".tsx")

IMPORT_FROM_RE = re.compile(r"""import\s+[^;]*?\sfrom\s+["']([^"']+)["']""")
IMPORT_BARE_RE = re.compile(r"""import\s+["']([^"']+)["']""")
REQUIRE_RE = re.compile(r"""require\(\s*["']([^"']+)["']\s*\)""")

_PATTERNS = (IMPORT_FROM_RE, IMPORT_BARE_RE, REQUIRE_RE)


def is_local_specifier(spec: str) -> bool:
	return spec.startswith("./") or spec.startswith("../")


def extract_import_specifiers(text: str) -> List[str]:
	"""Return the distinct specifiers referenced by ``text``, in first-seen order."""
	specs: Dict[str, None] = {}
	for pattern in _PATTERNS:
		for match in pattern.finditer(text):
			specs.setdefault(match.group(1), None)
	return list(specs)


def local_specifiers(text: str) -> List[str]:
	return [s for s in extract_import_specifiers(text) if is_local_specifier(s)]


def candidate_paths(from_path: str, spec: str) -> List[str]:
	"""Lookup order: literal path, path plus extension, then directory index file."""
	from_dir = posixpath.dirname(from_path.replace("\\", "/"))
	base = posixpath.normpath(posixpath.join(from_dir, spec.replace("\\", "/")))
	candidates = [base]
	candidates.extend(f"{base}{ext}" for ext in CODE_EXTENSIONS)
	candidates.extend(posixpath.normpath(posixpath.join(base, f"index{ext}")) for ext in CODE_EXTENSIONS)
	return candidates


def resolve_import(from_path: str, spec: str, known_paths: AbstractSet[str]) -> Optional[str]:
	"""Resolve a local specifier to a file in ``known_paths``.

	Matching is case-sensitive on every platform. Returns None when no candidate
	matches.
	"""
	for candidate in candidate_paths(from_path, spec):
		if candidate in known_paths:
			return candidate
	return None
