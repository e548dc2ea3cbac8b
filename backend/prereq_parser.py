import re
import pandas as pd

from requirements import NONE_VALUES

# Track-id lists in catalog cells: "intro; basics" or "intro, basics"
LIST_SPLIT = re.compile(r'\s*[;,]\s*')


def parse_track_ids(raw) -> list[str]:
    """
    Parses a prerequisites / next_tracks / mutually_exclusive_with cell.

    Accepts a list (YAML) or a ';'/','-separated string (CSV).
      None / NaN / 'none' / 'n/a' / ''  → []
      'intro'                           → ['intro']
      'intro; basics'                   → ['intro', 'basics']
    Order is kept and duplicates dropped.
    """
    if raw is None or (isinstance(raw, float) and pd.isna(raw)):
        return []
    if isinstance(raw, (list, tuple)):
        tokens = [str(t).strip() for t in raw if t is not None]
    else:
        s = str(raw).strip()
        if s.lower() in NONE_VALUES:
            return []
        tokens = LIST_SPLIT.split(s)
    tokens = [t for t in tokens if t and t.lower() not in NONE_VALUES]
    return list(dict.fromkeys(tokens))


def prerequisites_met(track, completion, graph) -> bool:
    """
    True when the track is reachable by normal traversal.

    The entry track is always reachable. Any other track with no declared
    prerequisites is never reachable this way (direct navigation only).
    Otherwise every prerequisite must be completed; ids the catalog does
    not define are never satisfied.
    """
    if track is None:
        return False
    if track.track_id == graph.entry_track_id:
        return True
    if not track.prerequisites:
        return False
    return all(
        prereq in graph and prereq in completion
        for prereq in track.prerequisites
    )


def missing_prerequisites(track, completion, graph) -> list[str]:
    """Prerequisites still blocking the track, in declaration order."""
    if track is None or track.track_id == graph.entry_track_id:
        return []
    return [
        prereq for prereq in track.prerequisites
        if prereq not in graph or prereq not in completion
    ]
