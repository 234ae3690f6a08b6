import io
import os
import zipfile
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from analyzer.config import AnalyzerConfig
from analyzer.jobs import CleanupRegistry
from api import app, get_cleanup_registry, get_config


def zip_bytes(files):
	buf = io.BytesIO()
	with zipfile.ZipFile(buf, "w") as zf:
		for name, content in files.items():
			zf.writestr(name, content)
	return buf.getvalue()


@pytest.fixture
def config(tmp_path):
	return AnalyzerConfig(
		uploads_dir=str(tmp_path / "uploads"),
		extracted_dir=str(tmp_path / "extracted"),
		max_files=10,
		max_upload_bytes=64 * 1024,
	)


@pytest.fixture
def registry():
	return CleanupRegistry(ttl_seconds=3600)


@pytest.fixture
def client(config, registry):
	app.dependency_overrides[get_config] = lambda: config
	app.dependency_overrides[get_cleanup_registry] = lambda: registry
	yield TestClient(app)
	app.dependency_overrides.clear()


def upload(client, name, data):
	return client.post("/upload", files={"archive": (name, data, "application/octet-stream")})


def test_health(client):
	resp = client.get("/health")
	assert resp.status_code == 200
	assert resp.json() == {"ok": True, "service": "codebase-explorer-api"}


def test_upload_zip_returns_full_analysis(client, config, registry):
	data = zip_bytes(
		{
			"src/index.js": 'require("./util")\n',
			"src/util.js": "",
			"README.md": "# demo\n",
		}
	)
	resp = upload(client, "demo.zip", data)
	assert resp.status_code == 200
	body = resp.json()

	assert body["ok"] is True
	assert body["originalName"] == "demo.zip"
	assert body["ext"] == ".zip"
	assert body["size"] == len(data)
	assert body["storedAs"].endswith("-demo.zip")
	assert body["filesCount"] == 3
	assert "note" not in body

	assert body["tree"]["name"] == "root"
	assert [c["name"] for c in body["tree"]["children"]] == ["src", "README.md"]
	assert body["tree"]["children"][1] == {"name": "README.md", "type": "file", "path": "README.md"}

	assert body["graph"] == {
		"nodes": [{"id": "src/index.js"}, {"id": "src/util.js"}],
		"edges": [{"source": "src/index.js", "target": "src/util.js"}],
	}
	assert body["stats"]["exts"] == {".js": 2, ".md": 1}
	assert body["stats"]["graph"]["nodes"] == 2
	assert body["stats"]["graph"]["edges"] == 1
	assert body["stats"]["graph"]["topDegree"][0] == {"id": "src/index.js", "degree": 1}

	job_dir = os.path.join(config.extracted_dir, body["jobId"])
	assert os.path.isdir(job_dir)
	pending = registry.pending()
	assert len(pending) == 1
	assert pending[0].extract_dir == job_dir


def test_rejects_unknown_extension(client):
	resp = upload(client, "notes.txt", b"hello")
	assert resp.status_code == 400
	assert resp.json() == {"ok": False, "error": "Only ZIP / RAR / 7Z files are allowed."}


def test_missing_file(client):
	resp = client.post("/upload", files={"other": ("a.zip", b"x", "application/zip")})
	assert resp.status_code == 400
	assert resp.json()["error"] == "No file uploaded"


def test_rar_is_stored_but_not_analyzed(client, config, registry):
	resp = upload(client, "Project.RAR", b"Rar!")
	assert resp.status_code == 200
	body = resp.json()
	assert body["ext"] == ".rar"
	assert "note" in body
	assert "jobId" not in body
	assert os.path.isfile(os.path.join(config.uploads_dir, body["storedAs"]))
	assert registry.pending()[0].extract_dir is None


def test_unsafe_archive_is_rejected_and_cleaned(client, config, registry):
	resp = upload(client, "slip.zip", zip_bytes({"ok.js": "", "../../evil.js": ""}))
	assert resp.status_code == 400
	assert resp.json() == {"ok": False, "error": "Invalid ZIP: unsafe file path found inside the archive."}
	assert os.listdir(config.extracted_dir) == []
	assert os.listdir(config.uploads_dir) == []
	assert registry.pending() == []


def test_too_many_files(client, config):
	resp = upload(client, "many.zip", zip_bytes({f"f{i}.js": "" for i in range(11)}))
	assert resp.status_code == 413
	assert resp.json()["ok"] is False
	assert os.listdir(config.extracted_dir) == []


def test_corrupt_zip(client):
	resp = upload(client, "broken.zip", b"definitely not a zip")
	assert resp.status_code == 400
	assert resp.json()["ok"] is False


def test_upload_over_size_limit(client, config):
	resp = upload(client, "huge.zip", b"\0" * (config.max_upload_bytes + 1))
	assert resp.status_code == 413
	assert resp.json()["ok"] is False
	assert os.listdir(config.uploads_dir) == []


def test_client_path_in_filename_is_dropped(client, config):
	resp = upload(client, "../../escape.zip", zip_bytes({"a.js": ""}))
	assert resp.status_code == 200
	assert resp.json()["originalName"] == "escape.zip"
	assert os.listdir(config.uploads_dir) == [resp.json()["storedAs"]]


def test_same_name_uploads_in_the_same_millisecond_stay_apart(client, config, monkeypatch):
	import api

	monkeypatch.setattr(api, "time", SimpleNamespace(time=lambda: 1760000000.0))
	first = upload(client, "a.zip", zip_bytes({"one.js": ""}))
	second = upload(client, "a.zip", zip_bytes({"two.js": ""}))
	assert first.status_code == 200 and second.status_code == 200
	assert first.json()["storedAs"] != second.json()["storedAs"]
	assert sorted(os.listdir(config.uploads_dir)) == sorted([first.json()["storedAs"], second.json()["storedAs"]])
	assert first.json()["storedAs"].startswith("1760000000000-")


def test_lifespan_prepares_directories_and_runs_cleanup(tmp_path, monkeypatch):
	monkeypatch.setenv("UPLOADS_DIR", str(tmp_path / "up"))
	monkeypatch.setenv("EXTRACTED_DIR", str(tmp_path / "ex"))
	get_config.cache_clear()
	get_cleanup_registry.cache_clear()
	try:
		with TestClient(app) as live:
			assert live.get("/health").status_code == 200
			assert (tmp_path / "up").is_dir()
			assert (tmp_path / "ex").is_dir()
			assert get_cleanup_registry().running
		assert not get_cleanup_registry().running
	finally:
		get_config.cache_clear()
		get_cleanup_registry.cache_clear()
