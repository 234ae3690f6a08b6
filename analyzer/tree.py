from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from pyuca import Collator

from .model import TreeNode


_COLLATOR = Collator()


def _sort_key(node: TreeNode) -> Tuple[int, Tuple[int, ...], str]:
	# Folders first, then Unicode collation order; the raw name keeps the order total.
	return (0 if node.type == "folder" else 1, tuple(_COLLATOR.sort_key(node.name)), node.name)


class _FolderBuilder:
	def __init__(self, name: str):
		self.name = name
		self.folders: Dict[str, _FolderBuilder] = {}
		self.files: List[TreeNode] = []

	def folder(self, name: str) -> _FolderBuilder:
		child = self.folders.get(name)
		if child is None:
			child = _FolderBuilder(name)
			self.folders[name] = child
		return child

	def build(self) -> TreeNode:
		children = [f.build() for f in self.folders.values()] + list(self.files)
		children.sort(key=_sort_key)
		return TreeNode(name=self.name, type="folder", children=children)


def build_file_tree(paths: Iterable[str], root_name: str = "root") -> TreeNode:
	"""Build the folder/file tree for a list of project-relative paths.

	Folders are matched by exact name. The result does not depend on the order
	of ``paths``: every folder lists sub-folders first, then files, each group
	sorted by name.
	"""
	root = _FolderBuilder(root_name)
	seen = set()
	for rel_path in paths:
		parts = [p for p in rel_path.split("/") if p]
		if not parts:
			continue
		normalized = "/".join(parts)
		if normalized in seen:
			continue
		seen.add(normalized)
		node = root
		for name in parts[:-1]:
			node = node.folder(name)
		node.files.append(TreeNode(name=parts[-1], type="file", path=rel_path))
	return root.build()
