"""
Runs the frontend's songify script, which turns chords.html into song.json.
"""

import os
import subprocess
from pathlib import Path
from typing import Optional

from resonance.exceptions import SongifyError
from resonance.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SCRIPT = Path("frontend") / "scripts" / "songify.ts"


class Songify:
    def __init__(self, script: Path, workdir: Optional[Path] = None, timeout: float = 120.0):
        self.script = script
        self.workdir = workdir
        self.timeout = timeout

    @classmethod
    def discover(cls, songs_dir: Path, configured: str = "") -> Optional["Songify"]:
        """Locate the script next to the songs directory.

        ``configured`` may be absolute or relative to the parent of
        ``songs_dir``. Returns None when no script exists, in which case
        song.json is simply not generated.
        """
        repo_root = songs_dir.parent
        frontend_dir = repo_root / "frontend"
        if configured:
            script = Path(configured)
            if not script.is_absolute():
                script = repo_root / script
        else:
            script = repo_root / DEFAULT_SCRIPT
        if not script.is_file():
            return None
        return cls(script, workdir=frontend_dir if frontend_dir.is_dir() else None)

    def command(self, chords_path: Path, output_path: Path) -> list:
        return ["npx", "--yes", "--no-install", "tsx", str(self.script), str(chords_path), str(output_path)]

    def run(self, chords_path: Path) -> Path:
        """Write song.json beside ``chords_path`` and return its path."""
        output_path = chords_path.parent / "song.json"
        try:
            subprocess.run(
                self.command(chords_path, output_path),
                cwd=str(self.workdir) if self.workdir else None,
                env=os.environ.copy(),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            logger.error(f"songify failed for {chords_path}: {stderr}")
            raise SongifyError(f"songify {chords_path.name}: exit status {e.returncode}", stderr) from e
        except (OSError, subprocess.TimeoutExpired) as e:
            raise SongifyError(f"songify {chords_path.name}: {e}") from e
        return output_path
