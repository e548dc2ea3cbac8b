"""Track catalog data model: questions, criteria, tracks and the routing graph."""

from dataclasses import dataclass, field

from errors import CatalogError, UnknownTrackError
from requirements import DEFAULT_QUESTION_TYPE


@dataclass(frozen=True)
class Question:
    key: str
    type: str = DEFAULT_QUESTION_TYPE
    label: str = ""
    help_text: str | None = None
    optional: bool = False


@dataclass(frozen=True)
class Criterion:
    answer_key: str
    expected_value: bool | int | float | str | None = None


@dataclass(frozen=True)
class TrackDefinition:
    track_id: str
    order: int | float = 0
    prerequisites: tuple[str, ...] = ()
    is_terminal: bool = False
    mutually_exclusive_with: tuple[str, ...] = ()
    eligibility_criteria: tuple[Criterion, ...] = ()
    questions: tuple[Question, ...] = ()
    category: str | None = None
    label: str = ""
    summary: str = ""
    # None → successors are derived from other tracks' prerequisites.
    next_tracks: tuple[str, ...] | None = None
    required: bool = False
    description: str = ""

    @property
    def sort_key(self) -> tuple:
        return (self.order, self.track_id)

    @property
    def question_keys(self) -> list[str]:
        return [q.key for q in self.questions]

    def question(self, key: str) -> Question | None:
        for q in self.questions:
            if q.key == key:
                return q
        return None


@dataclass(frozen=True)
class RoutingGraph:
    """
    Immutable catalog for a session: the entry track id plus every track,
    keyed by id in declaration order.
    """
    entry_track_id: str
    tracks: dict[str, TrackDefinition] = field(default_factory=dict)

    def __post_init__(self):
        if not self.entry_track_id:
            raise CatalogError("Routing graph has no entry track.")
        if self.entry_track_id not in self.tracks:
            raise CatalogError(
                f"Entry track '{self.entry_track_id}' is not defined in the catalog."
            )
        for track_id, track in self.tracks.items():
            if track.track_id != track_id:
                raise CatalogError(
                    f"Catalog key '{track_id}' does not match track id '{track.track_id}'."
                )

    @classmethod
    def from_tracks(cls, entry_track_id: str, tracks) -> "RoutingGraph":
        mapping: dict[str, TrackDefinition] = {}
        duplicates = []
        for track in tracks:
            if track.track_id in mapping:
                duplicates.append(track.track_id)
            mapping[track.track_id] = track
        if duplicates:
            raise CatalogError(f"Duplicate track id(s): {sorted(set(duplicates))}")
        return cls(entry_track_id, mapping)

    @property
    def entry(self) -> TrackDefinition:
        return self.tracks[self.entry_track_id]

    def get(self, track_id) -> TrackDefinition | None:
        return self.tracks.get(track_id)

    def require(self, track_id) -> TrackDefinition:
        track = self.tracks.get(track_id)
        if track is None:
            raise UnknownTrackError(track_id)
        return track

    def ordered(self) -> list[TrackDefinition]:
        """Tracks by order, ties broken by track id."""
        return sorted(self.tracks.values(), key=lambda t: t.sort_key)

    def question_owner(self, key: str) -> TrackDefinition | None:
        for track in self.tracks.values():
            if track.question(key) is not None:
                return track
        return None

    def __contains__(self, track_id) -> bool:
        return track_id in self.tracks

    def __len__(self) -> int:
        return len(self.tracks)
