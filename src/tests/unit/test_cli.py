"""Tests for the hubdrivers CLI against the disk driver."""

from pathlib import Path
from unittest.mock import patch

import pytest

from hubdrivers.main import build_parser, main


@pytest.fixture(autouse=True)
def disk_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path / "storage"
    monkeypatch.setenv("HUB_DRIVER", "disk")
    monkeypatch.setenv("HUB_DISK_STORAGE_ROOT", str(root))
    monkeypatch.setenv("HUB_DISK_BUCKET", "hub")
    monkeypatch.setenv("HUB_DISK_READ_URL", "http://files.local")
    monkeypatch.setenv("HUB_DISK_PAGE_SIZE", "2")
    with patch("hubdrivers.main.setup_logging"):
        yield root


@pytest.fixture
def local_file(tmp_path: Path) -> Path:
    path = tmp_path / "avatar.png"
    path.write_bytes(b"\x89PNG data")
    return path


class TestParser:

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_ls_options(self) -> None:
        args = build_parser().parse_args(["ls", "user1", "--page", "2", "--all"])

        assert args.prefix == "user1"
        assert args.page == "2"
        assert args.all is True


class TestProvision:

    def test_creates_bucket(self, disk_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
        main(["provision"])

        assert (disk_env / "hub").is_dir()
        assert capsys.readouterr().out.strip() == "disk bucket ready: hub"


class TestPut:

    def test_prints_public_url(
        self, disk_env: Path, local_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main(["put", str(local_file), "user1", "img/avatar.png"])

        assert capsys.readouterr().out.strip() == "http://files.local/hub/user1/img/avatar.png"
        assert (disk_env / "hub" / "user1" / "img" / "avatar.png").read_bytes() == b"\x89PNG data"

    def test_invalid_path_exits(
        self, local_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["put", str(local_file), "user1", "../user2/avatar.png"])

        assert exc_info.value.code == 1
        assert "Error: Invalid Path" in capsys.readouterr().err.splitlines()


class TestLs:

    @pytest.fixture
    def stored(self, local_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
        for name in ("a.png", "b.png", "c.png"):
            main(["put", str(local_file), "user1", name])
        capsys.readouterr()

    def test_first_page(self, stored: None, capsys: pytest.CaptureFixture[str]) -> None:
        main(["ls", "user1"])

        captured = capsys.readouterr()
        assert captured.out.split() == ["a.png", "b.png"]
        assert "next page: user1/b.png" in captured.err.splitlines()

    def test_all_pages(self, stored: None, capsys: pytest.CaptureFixture[str]) -> None:
        main(["ls", "user1", "--all"])

        captured = capsys.readouterr()
        assert captured.out.split() == ["a.png", "b.png", "c.png"]
        assert "next page" not in captured.err

    def test_resume_from_token(self, stored: None, capsys: pytest.CaptureFixture[str]) -> None:
        main(["ls", "user1", "--page", "user1/b.png"])

        assert capsys.readouterr().out.split() == ["c.png"]
