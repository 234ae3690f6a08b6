from __future__ import annotations

import logging
import os
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .fs_scan import file_extension
from .imports import CODE_EXTENSIONS, local_specifiers, resolve_import
from .model import DependencyGraph, GraphEdge, GraphNode


logger = logging.getLogger(__name__)


class ImportGraph:
	"""Nodes in insertion order plus edges deduplicated by (source, target)."""

	def __init__(self):
		self.nodes: Dict[str, None] = {}
		self.edges: List[Tuple[str, str]] = []
		self._edge_keys: Set[Tuple[str, str]] = set()

	def add_node(self, node_id: str):
		self.nodes.setdefault(node_id, None)

	def add_edge(self, source: str, target: str) -> bool:
		"""Add an edge between known nodes; returns False for unknown or repeated pairs."""
		if source not in self.nodes or target not in self.nodes:
			return False
		key = (source, target)
		if key in self._edge_keys:
			return False
		self._edge_keys.add(key)
		self.edges.append(key)
		return True

	def to_model(self) -> DependencyGraph:
		return DependencyGraph(
			nodes=[GraphNode(id=n) for n in self.nodes],
			edges=[GraphEdge(source=s, target=t) for s, t in self.edges],
		)


def is_code_file(rel_path: str) -> bool:
	return file_extension(rel_path) in CODE_EXTENSIONS


def read_source(path: str) -> Optional[str]:
	"""Read a source file as UTF-8, or return None when it cannot be decoded or read."""
	try:
		with open(path, "r", encoding="utf-8") as fh:
			return fh.read()
	except (OSError, UnicodeDecodeError) as e:
		logger.debug("Skipping import scan of %s: %s", path, e)
		return None


def build_import_graph(root: str, paths: Iterable[str]) -> DependencyGraph:
	"""Build the local-import graph for the code files among ``paths``.

	Every code file becomes a node, including unreadable ones and ones with no
	edges. Specifiers that do not resolve to a node are dropped.
	"""
	graph = ImportGraph()
	code_paths = [p for p in paths if is_code_file(p)]
	for rel_path in code_paths:
		graph.add_node(rel_path)
	known = set(graph.nodes)

	for rel_path in code_paths:
		text = read_source(os.path.join(root, *rel_path.split("/")))
		if text is None:
			continue
		for spec in local_specifiers(text):
			target = resolve_import(rel_path, spec, known)
			if target is not None:
				graph.add_edge(rel_path, target)

	logger.debug("Import graph: %d nodes, %d edges", len(graph.nodes), len(graph.edges))
	return graph.to_model()
