"""
Integrity gate for a track catalog.

Loads a catalog (CSV directory or YAML routing file) and reports every
problem that would make a session start fail, plus warnings for tracks
that load but behave suspiciously. Importable for tests and runnable as
a standalone CLI.

Usage:
    python scripts/validate_catalog.py
    python scripts/validate_catalog.py --path data/
    python scripts/validate_catalog.py --path path/to/track_routing.yaml
    python scripts/validate_catalog.py --track startup_grant
"""

import argparse
import os
import sys

BACKEND_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "backend")
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

from config import DATA_PATH  # noqa: E402
from data_loader import read_catalog  # noqa: E402
from errors import CatalogError  # noqa: E402
from requirements import QUESTION_TYPES  # noqa: E402
from unlocks import unreachable_tracks  # noqa: E402


# ── Validation result ─────────────────────────────────────────────────────────

class ValidationResult:
    """Collects errors and warnings for one validation run."""

    def __init__(self, subject: str):
        self.subject = subject
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def error(self, msg: str) -> None:
        self.errors.append(msg)

    def warn(self, msg: str) -> None:
        self.warnings.append(msg)

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        lines = [f"[{status}] {self.subject}"]
        for e in self.errors:
            lines.append(f"  [ERROR] {e}")
        for w in self.warnings:
            lines.append(f"  [WARN]  {w}")
        if self.passed and not self.warnings:
            lines.append("  All checks passed.")
        return "\n".join(lines)


# ── Track-level checks ────────────────────────────────────────────────────────

def check_track_exists(track_id: str, graph, result: ValidationResult) -> bool:
    if track_id not in graph:
        result.error(f"Track '{track_id}' not found in catalog.")
        return False
    return True


def check_questions(track, result: ValidationResult) -> None:
    """Completing a track without questions needs no input at all."""
    if not track.questions:
        result.warn(f"Track '{track.track_id}' has no questions; it completes immediately.")
        return
    seen = set()
    for q in track.questions:
        if q.key in seen:
            result.error(f"Question key '{q.key}' appears more than once.")
        seen.add(q.key)
        if q.type not in QUESTION_TYPES:
            result.warn(f"Question '{q.key}' has unknown type '{q.type}'; treated as text.")
    if all(q.optional for q in track.questions):
        result.warn(
            f"Every question of '{track.track_id}' is optional; "
            "progress is measured against all of them."
        )


def check_links(track, graph, result: ValidationResult) -> None:
    tid = track.track_id
    for prereq in track.prerequisites:
        if prereq not in graph:
            result.error(f"Unknown prerequisite '{prereq}'.")
    for next_id in track.next_tracks or ():
        if next_id not in graph:
            result.error(f"Unknown next track '{next_id}'.")
    for other in track.mutually_exclusive_with:
        if other not in graph:
            result.error(f"Mutually exclusive with unknown track '{other}'.")
            continue
        # Exclusion is checked from the side being entered only.
        if tid not in graph.get(other).mutually_exclusive_with:
            result.warn(f"Exclusion with '{other}' is one-sided.")


def check_criteria(track, graph, result: ValidationResult) -> None:
    known_keys = set()
    for other in graph.tracks.values():
        known_keys.update(other.question_keys)
    for criterion in track.eligibility_criteria:
        if criterion.answer_key not in known_keys:
            result.warn(
                f"Criterion on '{criterion.answer_key}' reads a key no question produces."
            )


def check_reachable(track, graph, result: ValidationResult) -> None:
    if track.track_id in unreachable_tracks(graph):
        result.warn(f"Not reachable from entry track '{graph.entry_track_id}'.")


def validate_track(track_id: str, graph) -> ValidationResult:
    """Run every track-level check for one track."""
    result = ValidationResult(f"Track '{track_id}'")
    if not check_track_exists(track_id, graph, result):
        return result
    track = graph.get(track_id)
    check_questions(track, result)
    check_links(track, graph, result)
    check_criteria(track, graph, result)
    check_reachable(track, graph, result)
    return result


def validate_catalog(path: str) -> ValidationResult:
    """
    Load the catalog at `path` and collect its integrity problems.
    A catalog that cannot be built at all is reported as a single error.
    """
    result = ValidationResult(f"Catalog '{path}'")
    try:
        graph, problems = read_catalog(path)
    except CatalogError as exc:
        for problem in exc.problems:
            result.error(problem)
        return result
    for msg in problems["errors"]:
        result.error(msg)
    for msg in problems["warnings"]:
        result.warn(msg)
    if result.passed:
        print(f"[INFO] {len(graph)} tracks, entry '{graph.entry_track_id}'.")
    return result


def main(args=None) -> int:
    parser = argparse.ArgumentParser(
        description="Validate a track catalog before starting sessions with it.",
    )
    parser.add_argument(
        "--path", type=str, default=DATA_PATH,
        help="Catalog directory, tracks.csv or track_routing.yaml.",
    )
    parser.add_argument("--track", type=str, help="Also run track-level checks for this track.")
    opts = parser.parse_args(args)

    result = validate_catalog(opts.path)
    print(result.summary())
    if not result.passed:
        return 1

    if opts.track:
        graph, _ = read_catalog(opts.path)
        track_result = validate_track(opts.track.strip(), graph)
        print(track_result.summary())
        if not track_result.passed:
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
