"""Analyzer package for unpacking uploaded codebases and mapping their local imports.

Modules:
- extract.py: Safe extraction of untrusted zip archives.
- fs_scan.py: Listing the extracted file set.
- tree.py: Folder/file tree construction.
- imports.py: Lexical import extraction and relative specifier resolution.
- graph.py: Dependency graph assembly.
- summarize.py: Extension counts and degree ranking.
- jobs.py: Analysis pipeline and deferred cleanup.
- model.py: Data structures for trees, graphs and results.
"""

__all__ = [
	"config",
	"errors",
	"extract",
	"fs_scan",
	"graph",
	"imports",
	"jobs",
	"log",
	"model",
	"summarize",
	"tree",
]
