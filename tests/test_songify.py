"""Tests for the songify subprocess wrapper."""
from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from resonance.exceptions import SongifyError
from resonance.songify import Songify


def make_repo(tmp_path: Path) -> Path:
    script = tmp_path / "frontend" / "scripts" / "songify.ts"
    script.parent.mkdir(parents=True)
    script.write_text("// converter")
    songs_dir = tmp_path / "songs"
    songs_dir.mkdir()
    return songs_dir


def test_discover_default_script(tmp_path: Path) -> None:
    songify = Songify.discover(make_repo(tmp_path))
    assert songify is not None
    assert songify.script == tmp_path / "frontend" / "scripts" / "songify.ts"
    assert songify.workdir == tmp_path / "frontend"


def test_discover_relative_configured_script(tmp_path: Path) -> None:
    songs_dir = make_repo(tmp_path)
    custom = tmp_path / "tools" / "convert.ts"
    custom.parent.mkdir()
    custom.write_text("")
    songify = Songify.discover(songs_dir, "tools/convert.ts")
    assert songify is not None
    assert songify.script == custom


def test_discover_missing_script(tmp_path: Path) -> None:
    songs_dir = tmp_path / "songs"
    songs_dir.mkdir()
    assert Songify.discover(songs_dir) is None
    assert Songify.discover(songs_dir, "/does/not/exist.ts") is None


def test_run_invokes_npx_tsx(tmp_path: Path) -> None:
    songify = Songify.discover(make_repo(tmp_path))
    chords = tmp_path / "songs" / "Queen" / "Bohemian_Rhapsody" / "chords.html"

    with patch("resonance.songify.subprocess.run") as run:
        output = songify.run(chords)

    assert output == chords.parent / "song.json"
    args, kwargs = run.call_args
    assert args[0] == [
        "npx", "--yes", "--no-install", "tsx",
        str(songify.script), str(chords), str(chords.parent / "song.json"),
    ]
    assert kwargs["cwd"] == str(tmp_path / "frontend")
    assert kwargs["check"] is True


def test_run_failure_carries_stderr(tmp_path: Path) -> None:
    songify = Songify(tmp_path / "songify.ts")
    error = subprocess.CalledProcessError(1, ["npx"], stderr="  SyntaxError: bad chords\n")

    with patch("resonance.songify.subprocess.run", side_effect=error):
        with pytest.raises(SongifyError) as exc_info:
            songify.run(tmp_path / "chords.html")

    assert exc_info.value.stderr == "SyntaxError: bad chords"
    assert "SyntaxError: bad chords" in str(exc_info.value)


def test_run_missing_npx(tmp_path: Path) -> None:
    songify = Songify(tmp_path / "songify.ts")
    with patch("resonance.songify.subprocess.run", side_effect=FileNotFoundError("npx")):
        with pytest.raises(SongifyError):
            songify.run(tmp_path / "chords.html")
