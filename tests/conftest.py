import io
import zipfile

import pytest

from analyzer.model import ArchiveEntry


def entry(path, data=b"", size=None, is_dir=False):
	if isinstance(data, str):
		data = data.encode("utf-8")
	declared = len(data) if size is None else size
	return ArchiveEntry(path=path, size=declared, is_dir=is_dir, open=lambda: io.BytesIO(data))


@pytest.fixture
def make_zip(tmp_path):
	def _make(name, files):
		path = tmp_path / name
		with zipfile.ZipFile(path, "w") as zf:
			for arcname, content in files.items():
				zf.writestr(arcname, content)
		return path

	return _make


@pytest.fixture
def write_project(tmp_path):
	def _write(files, root_name="project"):
		root = tmp_path / root_name
		for rel_path, content in files.items():
			p = root / rel_path
			p.parent.mkdir(parents=True, exist_ok=True)
			if isinstance(content, bytes):
				p.write_bytes(content)
			else:
				p.write_text(content, encoding="utf-8")
		return root

	return _write
