from __future__ import annotations

import argparse
import json
import os
import sys
import tempfile
import uuid

import uvicorn

from analyzer.config import load_config
from analyzer.errors import ArchiveError
from analyzer.jobs import analyze_archive, analyze_directory, remove_path, sweep_directory
from analyzer.log import configure_logging


def cmd_analyze(args: argparse.Namespace) -> int:
	config = load_config()
	path = os.path.abspath(args.path)
	if os.path.isdir(path):
		result = analyze_directory(path, config)
	elif os.path.isfile(path):
		job_id = str(uuid.uuid4())
		workdir = tempfile.mkdtemp(prefix="codebase-explorer-")
		try:
			result = analyze_archive(path, os.path.join(workdir, job_id), config, job_id)
		except ArchiveError as e:
			print(f"error: {e.message} ({e})", file=sys.stderr)
			return 1
		finally:
			remove_path(workdir)
	else:
		print(f"error: no such file or directory: {path}", file=sys.stderr)
		return 2
	print(json.dumps(result.model_dump(by_alias=True, exclude_none=True), indent=2))
	return 0


def cmd_serve(args: argparse.Namespace) -> int:
	uvicorn.run("api:app", host=args.host, port=args.port, reload=args.reload)
	return 0


def cmd_sweep(args: argparse.Namespace) -> int:
	config = load_config()
	removed = sweep_directory(config.extracted_dir, config.cleanup_ttl_seconds)
	removed += sweep_directory(config.uploads_dir, config.cleanup_ttl_seconds)
	print(f"removed {removed} expired entries")
	return 0


def main(argv=None) -> int:
	parser = argparse.ArgumentParser(prog="codebase-explorer")
	parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
	sub = parser.add_subparsers(dest="cmd", required=True)

	pa = sub.add_parser("analyze", help="Analyze a zip archive or directory and print the result JSON")
	pa.add_argument("path", help="Path to a .zip archive or an unpacked project root")
	pa.set_defaults(func=cmd_analyze)

	ps = sub.add_parser("serve", help="Run FastAPI server")
	ps.add_argument("--host", default="127.0.0.1")
	ps.add_argument("--port", type=int, default=4000)
	ps.add_argument("--reload", action="store_true")
	ps.set_defaults(func=cmd_serve)

	pw = sub.add_parser("sweep", help="Delete uploads and extracted jobs older than the retention")
	pw.set_defaults(func=cmd_sweep)

	args = parser.parse_args(argv)
	configure_logging(args.log_level or load_config().log_level)
	return args.func(args)


if __name__ == "__main__":
	sys.exit(main())
