"""Track discovery and registry."""

from __future__ import annotations

from pathlib import Path

import yaml
from loguru import logger

from compass.content.loader import TrackMeta, load_achievements, load_track
from compass.engine.achievements import Achievement
from compass.engine.errors import CompassError, EmptyCatalog, UnknownTrack
from compass.engine.models import Assessment, Module


class TrackRegistry:
    """Discovers and loads tracks from the tracks directory."""

    def __init__(self, tracks_dir: Path | None = None):
        self.tracks_dir = tracks_dir or (
            Path(__file__).parent.parent / "tracks"
        )
        self._tracks: dict[str, TrackMeta] | None = None

    def _load(self) -> dict[str, TrackMeta]:
        if self._tracks is None:
            tracks: dict[str, TrackMeta] = {}
            for path in sorted(self.tracks_dir.iterdir()):
                if path.is_dir() and (path / "track.yaml").exists():
                    try:
                        track = load_track(path)
                    except (OSError, yaml.YAMLError, CompassError) as e:
                        logger.warning(f"Skipping track at {path}: {e}")
                        continue
                    tracks[track.id] = track
            self._tracks = tracks
        return self._tracks

    def list_tracks(self) -> list[TrackMeta]:
        return list(self._load().values())

    def get_track(self, track_id: str) -> TrackMeta:
        track = self._load().get(track_id)
        if track is None:
            raise UnknownTrack(track_id)
        return track

    def get_assessment(self, track_id: str) -> Assessment:
        assessment = self.get_track(track_id).assessment
        if assessment is None or not assessment.questions:
            raise EmptyCatalog(track_id, "questions")
        return assessment

    def module_catalogs(self) -> dict[str, list[Module]]:
        return {t.id: t.modules for t in self._load().values()}

    def achievements(self) -> list[Achievement]:
        path = self.tracks_dir / "achievements.yaml"
        if not path.exists():
            return []
        return load_achievements(path)
