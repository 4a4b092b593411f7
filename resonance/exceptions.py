"""Domain errors raised by the song service."""


class ResonanceError(Exception):
    """Base class for all song service errors."""


class InvalidRequestError(ResonanceError):
    """Missing or malformed search/download input. Safe to show to callers."""


class SongNotFoundError(ResonanceError):
    """The requested song directory does not exist."""

    def __init__(self, artist_slug: str, song_slug: str):
        super().__init__(f"song not found: {artist_slug}/{song_slug}")
        self.artist_slug = artist_slug
        self.song_slug = song_slug


class UpstreamError(ResonanceError):
    """Searching, fetching or rendering a tab failed."""


class SongifyError(ResonanceError):
    """The songify post-processing script exited with an error."""

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(f"{message} ({stderr})" if stderr else message)
        self.stderr = stderr
