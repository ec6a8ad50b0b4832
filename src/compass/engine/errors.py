"""Error kinds raised by the Compass engine."""

from __future__ import annotations


class CompassError(Exception):
    """Base class for every error the engine signals to its caller."""

    kind = "CompassError"


class MalformedInput(CompassError):
    """Answers do not line up with the questions, or content is malformed."""

    kind = "MalformedInput"


class UnknownTrack(CompassError):
    kind = "UnknownTrack"

    def __init__(self, track_id: str):
        super().__init__(f"Unknown track: {track_id}")
        self.track_id = track_id


class EmptyCatalog(CompassError):
    """The track exists but has nothing to offer (no questions)."""

    kind = "EmptyCatalog"

    def __init__(self, track_id: str, what: str = "questions"):
        super().__init__(f"Track {track_id} has no {what}")
        self.track_id = track_id


class InvalidTransition(CompassError):
    """A session operation does not apply to the user's current state."""

    kind = "InvalidTransition"
