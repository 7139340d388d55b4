"""Tests for the command line entry point."""

import zipfile
from pathlib import Path

import yaml

from run import main

ISBN = "9780486282145"


def write_config(tmp_path: Path) -> Path:
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        yaml.dump(
            {
                "ingestion": {"content_drop_dir": str(tmp_path / "drop")},
                "publishing": {"pickup_dir": str(tmp_path / "epubs"), "temp_dir": str(tmp_path)},
                "storage": {"sqlite_path": str(tmp_path / "db" / "content.db")},
            }
        )
    )
    return config_file


class TestMain:
    def test_ingest_then_publish(self, tmp_path: Path) -> None:
        config_file = write_config(tmp_path)
        drop_dir = tmp_path / "drop"
        drop_dir.mkdir()
        with zipfile.ZipFile(drop_dir / f"{ISBN}.zip", "w") as zf:
            zf.writestr("package.opf", b"<package/>")
            zf.writestr(f"{ISBN}-Chapter-001.xhtml", b"<html/>")

        assert main(["--config", str(config_file), "ingest"]) == 0
        assert not (drop_dir / f"{ISBN}.zip").exists()

        assert main(["--config", str(config_file), "publish", ISBN]) == 0
        assert (tmp_path / "epubs" / f"{ISBN}.epub").exists()

    def test_publish_unknown_title(self, tmp_path: Path) -> None:
        config_file = write_config(tmp_path)
        assert main(["--config", str(config_file), "publish", ISBN]) == 1
