"""Tests for the resonance-download command."""
from __future__ import annotations

from pathlib import Path

import pytest

from resonance.cli import main
from resonance.service import SongService


def test_download_prints_saved_paths(service: SongService, songs_dir: Path, capsys: pytest.CaptureFixture) -> None:
    exit_code = main(["Queen", "Bohemian Rhapsody"], service=service)

    out = capsys.readouterr().out
    chords_path = service.songs_dir / "Queen" / "Bohemian_Rhapsody" / "chords.html"
    assert exit_code == 0
    assert "Downloaded Queen - Bohemian Rhapsody" in out
    assert f"Chords saved to {chords_path}" in out
    assert "Tab saved to" not in out
    assert chords_path.is_file()


def test_download_failure_exits_nonzero(service: SongService, upstream, capsys: pytest.CaptureFixture) -> None:  # type: ignore[no-untyped-def]
    upstream.hits = {}
    assert main(["Queen", "Unknown"], service=service) == 1
    assert "Downloaded" not in capsys.readouterr().out


def test_requires_both_arguments() -> None:
    with pytest.raises(SystemExit):
        main(["Queen"])
