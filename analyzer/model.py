from __future__ import annotations

from dataclasses import dataclass
from typing import IO, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


@dataclass(frozen=True)
class ArchiveEntry:
	"""One record read from an untrusted archive.

	``path`` is the raw entry name and ``size`` the declared uncompressed size,
	neither of which is trusted. ``open`` returns a binary stream of the
	entry's content.
	"""

	path: str
	size: Optional[int]
	is_dir: bool
	open: Callable[[], IO[bytes]]


class ApiModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TreeNode(ApiModel):
	name: str
	type: Literal["folder", "file"]
	children: Optional[List[TreeNode]] = None
	path: Optional[str] = None


class GraphNode(ApiModel):
	id: str


class GraphEdge(ApiModel):
	source: str
	target: str


class DependencyGraph(ApiModel):
	nodes: List[GraphNode] = []
	edges: List[GraphEdge] = []


class DegreeEntry(ApiModel):
	id: str
	degree: int


class GraphStats(ApiModel):
	nodes: int
	edges: int
	top_degree: List[DegreeEntry] = []


class AnalysisStats(ApiModel):
	exts: Dict[str, int]
	graph: GraphStats


class AnalysisResult(ApiModel):
	job_id: Optional[str] = None
	files_count: int
	stats: AnalysisStats
	tree: TreeNode
	graph: DependencyGraph


class UploadResponse(ApiModel):
	ok: bool = True
	original_name: str
	size: int
	stored_as: str
	ext: str
	note: Optional[str] = None
	job_id: Optional[str] = None
	files_count: Optional[int] = None
	stats: Optional[AnalysisStats] = None
	tree: Optional[TreeNode] = None
	graph: Optional[DependencyGraph] = None


class ErrorResponse(ApiModel):
	ok: bool = False
	error: str


TreeNode.model_rebuild()
