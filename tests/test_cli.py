import json
import os

from cli import main


def test_analyze_zip(make_zip, capsys):
	archive = make_zip(
		"proj.zip",
		{"src/index.js": 'require("./util")\n', "src/util.js": "", "README.md": ""},
	)
	assert main(["analyze", str(archive)]) == 0
	body = json.loads(capsys.readouterr().out)
	assert body["filesCount"] == 3
	assert body["graph"]["edges"] == [{"source": "src/index.js", "target": "src/util.js"}]
	assert body["stats"]["exts"] == {".js": 2, ".md": 1}


def test_analyze_directory(write_project, capsys):
	root = write_project({"lib/a.ts": 'import { b } from "./b";\n', "lib/b.ts": ""})
	assert main(["analyze", str(root)]) == 0
	body = json.loads(capsys.readouterr().out)
	assert "jobId" not in body
	assert [n["id"] for n in body["graph"]["nodes"]] == ["lib/a.ts", "lib/b.ts"]


def test_analyze_unsafe_zip_fails(make_zip, capsys):
	archive = make_zip("slip.zip", {"../evil.js": ""})
	assert main(["analyze", str(archive)]) == 1
	assert "unsafe file path" in capsys.readouterr().err


def test_analyze_missing_path(tmp_path, capsys):
	assert main(["analyze", str(tmp_path / "nope")]) == 2


def test_sweep_removes_expired_entries(tmp_path, monkeypatch, capsys):
	extracted = tmp_path / "extracted"
	uploads = tmp_path / "uploads"
	(extracted / "job-1").mkdir(parents=True)
	uploads.mkdir()
	(uploads / "1-a.zip").write_bytes(b"zip")
	for path in (extracted / "job-1", uploads / "1-a.zip"):
		os.utime(path, (0.0, 0.0))
	monkeypatch.setenv("EXTRACTED_DIR", str(extracted))
	monkeypatch.setenv("UPLOADS_DIR", str(uploads))
	monkeypatch.setenv("CLEANUP_TTL_SECONDS", "60")
	assert main(["sweep"]) == 0
	assert "removed 2" in capsys.readouterr().out
	assert os.listdir(extracted) == []
	assert os.listdir(uploads) == []
