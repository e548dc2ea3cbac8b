"""
Exception types surfaced by the routing resolver and the catalog loader.
"""


class RoutingError(Exception):
    """Base class for resolver and catalog errors."""


class ValidationError(RoutingError):
    """A track cannot be completed because required questions lack answers."""

    def __init__(self, track_id: str, missing_keys: list[str]):
        self.track_id = track_id
        self.missing_keys = list(missing_keys)
        super().__init__(
            f"Track '{track_id}' has unanswered required questions: "
            f"{', '.join(self.missing_keys)}"
        )


class UnknownTrackError(RoutingError, KeyError):
    """An explicit single-track operation named a track the catalog lacks."""

    def __init__(self, track_id: str):
        self.track_id = track_id
        super().__init__(track_id)

    def __str__(self) -> str:
        return f"Track '{self.track_id}' is not recognized."


class CatalogError(RoutingError):
    """The track catalog is malformed and cannot back a session."""

    def __init__(self, problems):
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))
