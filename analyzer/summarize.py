from __future__ import annotations

from typing import Dict, Iterable, List

from .fs_scan import file_extension
from .model import AnalysisResult, AnalysisStats, DegreeEntry, DependencyGraph, GraphStats


NO_EXTENSION = "(none)"
DEFAULT_TOP_DEGREE = 8


def count_extensions(paths: Iterable[str]) -> Dict[str, int]:
	counts: Dict[str, int] = {}
	for rel_path in paths:
		ext = file_extension(rel_path) or NO_EXTENSION
		counts[ext] = counts.get(ext, 0) + 1
	return counts


def rank_degrees(graph: DependencyGraph, top_n: int = DEFAULT_TOP_DEGREE) -> List[DegreeEntry]:
	"""Top ``top_n`` nodes by incoming plus outgoing edges.

	Ties keep node list order (sorted() is stable).
	"""
	degree: Dict[str, int] = {n.id: 0 for n in graph.nodes}
	for edge in graph.edges:
		degree[edge.source] = degree.get(edge.source, 0) + 1
		degree[edge.target] = degree.get(edge.target, 0) + 1
	ranked = sorted(degree.items(), key=lambda item: -item[1])
	return [DegreeEntry(id=node_id, degree=d) for node_id, d in ranked[:top_n]]


def build_analysis_stats(
	paths: List[str], graph: DependencyGraph, top_n: int = DEFAULT_TOP_DEGREE
) -> AnalysisStats:
	return AnalysisStats(
		exts=count_extensions(paths),
		graph=GraphStats(
			nodes=len(graph.nodes),
			edges=len(graph.edges),
			top_degree=rank_degrees(graph, top_n),
		),
	)


def summarize_result(result: AnalysisResult) -> str:
	"""One-line overview used for logs and the command line."""
	stats = result.stats
	top = ", ".join(f"{d.id} ({d.degree})" for d in stats.graph.top_degree[:3]) or "none"
	return (
		f"{result.files_count} files, {stats.graph.nodes} modules, "
		f"{stats.graph.edges} local imports; most connected: {top}"
	)
