"""
Print the routing state of a session against a track catalog.

Restores answers from a JSON file and completed track ids from the
command line, then reports each track's state and progress, the tracks
that can be entered next and where the default path currently ends.

Usage:
    python scripts/route_report.py
    python scripts/route_report.py --answers session.json --completed company_basics
    python scripts/route_report.py --answers session.json \\
        --completed company_basics,business_plan_basic --current numbers_basic --re-evaluate

The answers file is either flat ({"company_basics.name": "Acme"}) or
nested per track ({"company_basics": {"company_basics.name": "Acme"}}).
"""

import argparse
import json
import os
import sys

BACKEND_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "backend")
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

from completion_store import CompletionStore  # noqa: E402
from config import DATA_PATH  # noqa: E402
from data_loader import load_catalog  # noqa: E402
from eligibility import failing_criteria  # noqa: E402
from errors import CatalogError  # noqa: E402
from prereq_parser import missing_prerequisites, parse_track_ids  # noqa: E402
from resolver import RoutingResolver, TrackState  # noqa: E402
from summary import build_answer_summary  # noqa: E402
from unlocks import build_reverse_prereq_map, get_direct_unlocks  # noqa: E402


def _is_nested(saved: dict, graph) -> bool:
    return bool(saved) and all(
        isinstance(v, dict) and k in graph for k, v in saved.items()
    )


def restore_session(graph, saved_answers: dict | None, completed) -> RoutingResolver:
    """
    Build a resolver from persisted state. Answers go through set_answer so
    each value is normalised with its question's type.
    """
    resolver = RoutingResolver(graph, completion=CompletionStore(completed))
    saved_answers = saved_answers or {}
    if _is_nested(saved_answers, graph):
        for track_id, track_answers in saved_answers.items():
            for key, raw in track_answers.items():
                resolver.set_answer(key, raw, track_id=track_id)
    else:
        for key, raw in saved_answers.items():
            resolver.set_answer(key, raw)
    return resolver


def read_answers_file(path: str | None) -> dict:
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"Answers file must hold a JSON object: {path}")
    return data


def format_report(resolver: RoutingResolver, current_track_id: str | None = None) -> str:
    graph = resolver.graph
    lines = ["Tracks:"]
    for track in graph.ordered():
        marker = "*" if track.track_id == current_track_id else " "
        state = resolver.track_state(track.track_id)
        line = f" {marker} {track.track_id:<28} {state.value:<10} {resolver.progress(track.track_id):>3}%"
        if state == TrackState.LOCKED:
            blocking = missing_prerequisites(track, resolver.completion, graph)
            if blocking:
                line += f"  needs: {', '.join(blocking)}"
        lines.append(line)
    lines.append(f"Overall progress: {resolver.overall_progress()}%")

    lines.append("Next tracks:")
    candidates = resolver.available_next_tracks(current_track_id)
    if not candidates:
        lines.append("  (none)")
    for c in candidates:
        flags = []
        if not c.is_eligible:
            failing = failing_criteria(graph.get(c.track_id), resolver.answers)
            keys = ", ".join(cr.answer_key for cr in failing)
            flags.append(f"not eligible: {keys}" if keys else "not eligible")
        if c.is_mutually_exclusive_locked:
            flags.append("excluded")
        note = f" [{', '.join(flags)}]" if flags else ""
        lines.append(f"  - {c.track_id}: {c.label}{note}")

    if current_track_id in graph:
        unlocks = get_direct_unlocks(current_track_id, build_reverse_prereq_map(graph))
        if unlocks:
            lines.append(f"Completing {current_track_id} unlocks: {', '.join(unlocks)}")

    missing = resolver.missing_required_tracks()
    if missing:
        lines.append(f"Required tracks not completed: {', '.join(missing)}")
    lines.append(f"Default path ends at: {resolver.find_default_path()}")
    return "\n".join(lines)


def format_answer_summary(resolver: RoutingResolver) -> str:
    sections = build_answer_summary(resolver.graph, resolver.completion, resolver.answers)
    if not sections:
        return "Answers: (none)"
    lines = ["Answers:"]
    for section in sections:
        lines.append(f"  {section['label']} ({section['status']})")
        for item in section["answers"]:
            lines.append(f"    {item['label']}: {item['answer']}")
    return "\n".join(lines)


def main(args=None) -> int:
    parser = argparse.ArgumentParser(
        description="Report track states and routing for a saved session.",
    )
    parser.add_argument(
        "--path", type=str, default=DATA_PATH,
        help="Catalog directory, tracks.csv or track_routing.yaml.",
    )
    parser.add_argument("--answers", type=str, help="JSON file with saved answers.")
    parser.add_argument(
        "--completed", type=str, default="",
        help="Comma-separated ids of completed tracks.",
    )
    parser.add_argument("--current", type=str, help="Track the user is currently on.")
    parser.add_argument(
        "--re-evaluate", action="store_true", dest="re_evaluate",
        help="Prune completed tracks that no longer hold before reporting.",
    )
    parser.add_argument("--summary", action="store_true", help="Also list every answered question.")
    opts = parser.parse_args(args)

    try:
        graph = load_catalog(opts.path)
    except CatalogError as exc:
        print(f"[FATAL] Catalog could not be loaded: {exc}", file=sys.stderr)
        return 1

    try:
        saved = read_answers_file(opts.answers)
    except (OSError, ValueError) as exc:
        print(f"[FATAL] Could not read answers: {exc}", file=sys.stderr)
        return 1

    completed = parse_track_ids(opts.completed)
    unknown = [tid for tid in completed if tid not in graph]
    for tid in unknown:
        print(f"[WARN] Ignoring unknown completed track '{tid}'.", file=sys.stderr)
    completed = [tid for tid in completed if tid in graph]

    current = opts.current.strip() if opts.current else None
    if current is not None and current not in graph:
        print(f"[WARN] Current track '{current}' is not in the catalog.", file=sys.stderr)

    resolver = restore_session(graph, saved, completed)

    if opts.re_evaluate:
        result = resolver.re_evaluate(current)
        if result.pruned_track_ids:
            print(f"[INFO] Pruned: {', '.join(result.pruned_track_ids)}")
        else:
            print("[INFO] Nothing pruned.")
        if result.navigate:
            print(f"[INFO] Navigate to: {result.target_track_id}")
            current = result.target_track_id

    print(format_report(resolver, current))
    if opts.summary:
        print(format_answer_summary(resolver))
    return 0


if __name__ == "__main__":
    sys.exit(main())
