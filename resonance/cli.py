"""
Command line downloader: fetch chords/tab for one song into the songs directory.
"""

import argparse
import sys
from typing import List, Optional

from resonance.config import Config
from resonance.exceptions import ResonanceError
from resonance.logging import get_logger, setup_logging
from resonance.models import DownloadRequest
from resonance.service import CHORDS_FILE, TAB_FILE, SongService

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resonance-download",
        description="Download chords and tab for a song from Ultimate Guitar",
    )
    parser.add_argument("artist", help="Artist name, e.g. \"Queen\"")
    parser.add_argument("song", help="Song title, e.g. \"Bohemian Rhapsody\"")
    parser.add_argument(
        "--songs-dir",
        default=str(Config.SONGS_DIR),
        help=f"Directory where song files are stored (default: {Config.SONGS_DIR})",
    )
    return parser


def main(argv: Optional[List[str]] = None, service: Optional[SongService] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(Config.LOG_LEVEL)

    try:
        if service is None:
            service = SongService.from_config(args.songs_dir)
        detail = service.download(DownloadRequest(artist=args.artist, title=args.song))
    except (ResonanceError, OSError) as e:
        logger.error(f"download failed: {e}")
        return 1

    summary = detail.summary
    base_path = service.songs_dir / summary.artist_slug / summary.song_slug
    print(f"Downloaded {summary.artist} - {summary.title}")
    if detail.chords_html:
        print(f"Chords saved to {base_path / CHORDS_FILE}")
    if detail.tab_html:
        print(f"Tab saved to {base_path / TAB_FILE}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
