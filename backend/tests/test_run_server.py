"""
Tests for the server launcher.
"""

from pathlib import Path

import run_server
from gpstrack.main import DATA_FOLDER_ENV, DEFAULT_DATA_FOLDER


class TestLauncher:
    """Tests for argument handling."""

    def test_defaults(self):
        args = run_server.parse_args([])

        assert args.data_folder == DEFAULT_DATA_FOLDER
        assert args.port == 8000
        assert not args.sample

    def test_custom_folder_and_port(self):
        args = run_server.parse_args(["/data/logs", "--port", "5000"])

        assert args.data_folder == Path("/data/logs")
        assert args.port == 5000

    def test_sample_writes_logs_and_sets_folder(self, tmp_path, monkeypatch):
        calls = {}
        monkeypatch.setattr(run_server.uvicorn, "run", lambda app, **kw: calls.update(app=app, **kw))
        monkeypatch.delenv(DATA_FOLDER_ENV, raising=False)
        folder = tmp_path / "tracks"

        run_server.main([str(folder), "--sample"])

        assert len(list(folder.iterdir())) == 4
        assert calls["app"] == "gpstrack.main:app"
        assert run_server.os.environ[DATA_FOLDER_ENV] == str(folder)
