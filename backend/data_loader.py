import os
import sys

import pandas as pd
import yaml

from catalog import Criterion, Question, RoutingGraph, TrackDefinition
from errors import CatalogError
from normalizer import number_text
from prereq_parser import parse_track_ids
from requirements import (
    BOOL_FALSY,
    BOOL_TRUTHY,
    CRITERIA_CSV,
    CRITERION_VALUE_TYPES,
    DEFAULT_QUESTION_TYPE,
    QUESTIONS_CSV,
    ROUTING_FILE_NAME,
    TRACKS_CSV,
)
from validators import find_catalog_problems

TRACK_COLUMNS = [
    "track_id", "label", "summary", "description", "category", "order",
    "prerequisites", "next_tracks", "mutually_exclusive_with",
    "is_terminal", "is_entry", "required",
]
QUESTION_COLUMNS = ["track_id", "key", "type", "label", "help_text", "optional"]
CRITERIA_COLUMNS = ["track_id", "answer_key", "expected_value", "value_type"]


def _is_missing(x) -> bool:
    if x is None:
        return True
    if isinstance(x, (list, tuple, dict)):
        return False
    try:
        return bool(pd.isna(x))
    except (TypeError, ValueError):
        return False


def _safe_bool_col(df: pd.DataFrame, col: str) -> pd.DataFrame:
    """Normalize a boolean column to Python bool regardless of source format.

    Handles: Python bool, int/float (1/0), and string variants
    (TRUE/FALSE, true/false, 1/0, yes/no, y/n). NaN → False.
    """
    def _coerce(x):
        if _is_missing(x):
            return False
        if isinstance(x, bool):
            return x
        if isinstance(x, (int, float)):
            return bool(x)
        return str(x).strip().lower() in BOOL_TRUTHY

    if col in df.columns:
        df[col] = df[col].apply(_coerce).astype(object)
    return df


def _clean_str(x, default: str = "") -> str:
    if _is_missing(x):
        return default
    s = str(x).strip()
    return s if s else default


def _normalize_tracks_df(tracks_df: pd.DataFrame) -> pd.DataFrame:
    """Normalize track catalog columns, accepting the older column names."""
    tracks_df = tracks_df.copy()

    rename_map = {}
    aliases = {
        "id": "track_id",
        "title": "label",
        "dependencies": "prerequisites",
        "entry": "is_entry",
        "terminal": "is_terminal",
        "mutually_exclusive": "mutually_exclusive_with",
    }
    for old, new in aliases.items():
        if new not in tracks_df.columns and old in tracks_df.columns:
            rename_map[old] = new
    if rename_map:
        tracks_df = tracks_df.rename(columns=rename_map)

    for col in TRACK_COLUMNS:
        if col not in tracks_df.columns:
            tracks_df[col] = None

    tracks_df["track_id"] = tracks_df["track_id"].apply(_clean_str)
    tracks_df = tracks_df[tracks_df["track_id"] != ""].copy()
    if len(tracks_df) == 0:
        raise CatalogError("Catalog defines no tracks.")
    tracks_df["label"] = tracks_df.apply(lambda r: _clean_str(r["label"], r["track_id"]), axis=1)
    tracks_df["summary"] = tracks_df["summary"].apply(_clean_str)
    tracks_df["description"] = tracks_df["description"].apply(_clean_str)
    tracks_df["category"] = tracks_df["category"].apply(lambda v: _clean_str(v) or None)
    tracks_df["order"] = pd.to_numeric(tracks_df["order"], errors="coerce").fillna(0).astype(object)
    for col in ["is_terminal", "is_entry", "required"]:
        tracks_df = _safe_bool_col(tracks_df, col)

    return tracks_df[TRACK_COLUMNS]


def _normalize_questions_df(questions_df: pd.DataFrame) -> pd.DataFrame:
    if questions_df is None or len(questions_df) == 0:
        return pd.DataFrame(columns=QUESTION_COLUMNS)
    questions_df = questions_df.copy()
    if "key" not in questions_df.columns and "answer_key" in questions_df.columns:
        questions_df = questions_df.rename(columns={"answer_key": "key"})
    for col in QUESTION_COLUMNS:
        if col not in questions_df.columns:
            questions_df[col] = None

    questions_df["track_id"] = questions_df["track_id"].apply(_clean_str)
    questions_df["type"] = questions_df["type"].apply(
        lambda v: _clean_str(v, DEFAULT_QUESTION_TYPE).lower()
    )
    # Unnamed questions get '<track_id>.<position within track>'.
    position = questions_df.groupby("track_id").cumcount()
    questions_df["key"] = [
        _clean_str(key, f"{tid}.{pos}")
        for key, tid, pos in zip(questions_df["key"], questions_df["track_id"], position)
    ]
    questions_df["label"] = questions_df.apply(lambda r: _clean_str(r["label"], r["key"]), axis=1)
    questions_df["help_text"] = questions_df["help_text"].apply(lambda v: _clean_str(v) or None)
    questions_df = _safe_bool_col(questions_df, "optional")
    return questions_df[QUESTION_COLUMNS]


def _infer_value_type(raw) -> str:
    if _is_missing(raw):
        return "null"
    if isinstance(raw, bool):
        return "bool"
    if isinstance(raw, (int, float)):
        return "number"
    s = str(raw).strip()
    if not s:
        return "null"
    if s.lower() in ("true", "false"):
        return "bool"
    try:
        float(s)
        return "number"
    except ValueError:
        return "text"


def _coerce_expected(raw, value_type: str):
    if value_type == "null":
        return None
    if value_type == "bool":
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, (int, float)) and not _is_missing(raw):
            return bool(raw)
        token = _clean_str(raw).lower()
        if token in BOOL_TRUTHY:
            return True
        if token in BOOL_FALSY:
            return False
        raise CatalogError(f"Criterion value {raw!r} is not a boolean.")
    if value_type == "number":
        try:
            num = float(raw)
        except (TypeError, ValueError):
            raise CatalogError(f"Criterion value {raw!r} is not a number.")
        return int(num) if num.is_integer() else num
    if isinstance(raw, float) and not _is_missing(raw):
        return number_text(raw)
    return _clean_str(raw)


def _normalize_criteria_df(criteria_df: pd.DataFrame) -> pd.DataFrame:
    if criteria_df is None or len(criteria_df) == 0:
        return pd.DataFrame(columns=CRITERIA_COLUMNS)
    criteria_df = criteria_df.copy()
    rename_map = {}
    for old in ("answerKey", "key"):
        if "answer_key" not in criteria_df.columns and old in criteria_df.columns:
            rename_map[old] = "answer_key"
    if rename_map:
        criteria_df = criteria_df.rename(columns=rename_map)
    for col in CRITERIA_COLUMNS:
        if col not in criteria_df.columns:
            criteria_df[col] = None

    criteria_df["track_id"] = criteria_df["track_id"].apply(_clean_str)
    criteria_df["answer_key"] = criteria_df["answer_key"].apply(_clean_str)
    criteria_df = criteria_df[criteria_df["answer_key"] != ""].copy()

    def _value_type(row):
        vt = _clean_str(row["value_type"]).lower()
        if not vt:
            return _infer_value_type(row["expected_value"])
        if vt not in CRITERION_VALUE_TYPES:
            raise CatalogError(
                f"Criterion on '{row['answer_key']}' has unknown value_type '{vt}'."
            )
        return vt

    if len(criteria_df) > 0:
        criteria_df["value_type"] = criteria_df.apply(_value_type, axis=1)
        # Built as an object Series so None never turns into NaN.
        criteria_df["expected_value"] = pd.Series(
            [
                _coerce_expected(raw, vt)
                for raw, vt in zip(criteria_df["expected_value"], criteria_df["value_type"])
            ],
            index=criteria_df.index,
            dtype=object,
        )
    return criteria_df[CRITERIA_COLUMNS]


# ── YAML routing source ───────────────────────────────────────────────────────

def _read_yaml(path: str):
    with open(path, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh)


def _load_track_option(base_dir: str, file_ref, track_id: str) -> dict:
    """Returns options[0] of a track file, or {} when the file is absent."""
    if not file_ref:
        print(f"[WARN] Track '{track_id}' has no definition file; loading without questions.", file=sys.stderr)
        return {}
    track_path = os.path.normpath(os.path.join(base_dir, str(file_ref)))
    if not os.path.isfile(track_path):
        print(f"[WARN] Track file not found for '{track_id}': {track_path}", file=sys.stderr)
        return {}
    data = _read_yaml(track_path) or {}
    options = data.get("options") if isinstance(data, dict) else None
    if isinstance(options, list) and options and isinstance(options[0], dict):
        return options[0]
    return data if isinstance(data, dict) else {}


def _read_yaml_routing(routing_path: str):
    try:
        doc = _read_yaml(routing_path) or {}
    except yaml.YAMLError as exc:
        raise CatalogError(f"Routing file is not valid YAML ({routing_path}): {exc}")
    if not isinstance(doc, dict) or not isinstance(doc.get("routing"), list):
        raise CatalogError(f"Routing file has no 'routing' list: {routing_path}")

    base_dir = os.path.dirname(os.path.abspath(routing_path))
    track_rows, question_rows, criteria_rows = [], [], []

    for cfg in doc["routing"]:
        if not isinstance(cfg, dict):
            continue
        tid = _clean_str(cfg.get("track_id"))
        if not tid:
            continue
        option = _load_track_option(base_dir, cfg.get("file"), tid)
        track_rows.append({
            "track_id": tid,
            "label": option.get("label") or cfg.get("label"),
            "summary": option.get("summary") or cfg.get("summary"),
            "description": cfg.get("description"),
            "category": cfg.get("category") or option.get("track"),
            "order": cfg.get("order"),
            "prerequisites": cfg.get("prerequisites") or [],
            "next_tracks": cfg.get("next_tracks"),
            "mutually_exclusive_with": cfg.get("mutually_exclusive_with") or [],
            "is_terminal": cfg.get("is_terminal", False),
            "is_entry": tid == doc.get("entry_track"),
            "required": cfg.get("required", False),
        })
        for idx, inp in enumerate(option.get("required_inputs") or []):
            if not isinstance(inp, dict):
                continue
            question_rows.append({
                "track_id": tid,
                "key": inp.get("key") or f"{tid}.{inp.get('id', idx)}",
                "type": inp.get("type"),
                "label": inp.get("label"),
                "help_text": inp.get("help_text"),
                "optional": inp.get("optional", False),
            })
        eligibility = option.get("eligibility") or {}
        for ref in eligibility.get("criteria_refs") or []:
            if not isinstance(ref, dict):
                continue
            expected = ref.get("expected_value")
            criteria_rows.append({
                "track_id": tid,
                "answer_key": ref.get("answer_key") or ref.get("answerKey") or ref.get("key"),
                "expected_value": expected,
                "value_type": _infer_value_type(expected) if not isinstance(expected, str) else "text",
            })

    tracks_df = pd.DataFrame(track_rows, columns=TRACK_COLUMNS)
    questions_df = pd.DataFrame(question_rows, columns=QUESTION_COLUMNS)
    criteria_df = pd.DataFrame(criteria_rows, columns=CRITERIA_COLUMNS)
    # Keep next_tracks=None distinct from an explicit empty list.
    tracks_df["next_tracks"] = pd.Series(
        [r["next_tracks"] for r in track_rows], index=tracks_df.index, dtype=object
    )
    return doc.get("entry_track"), tracks_df, questions_df, criteria_df


# ── CSV directory source ──────────────────────────────────────────────────────

def _read_csv(path: str) -> pd.DataFrame:
    return pd.read_csv(path, dtype=str)


def _read_csv_dir(data_dir: str):
    tracks_path = os.path.join(data_dir, TRACKS_CSV)
    if not os.path.isfile(tracks_path):
        raise CatalogError(f"No {TRACKS_CSV} in catalog directory: {data_dir}")
    tracks_df = _read_csv(tracks_path)
    q_path = os.path.join(data_dir, QUESTIONS_CSV)
    c_path = os.path.join(data_dir, CRITERIA_CSV)
    questions_df = _read_csv(q_path) if os.path.isfile(q_path) else pd.DataFrame(columns=QUESTION_COLUMNS)
    criteria_df = _read_csv(c_path) if os.path.isfile(c_path) else pd.DataFrame(columns=CRITERIA_COLUMNS)
    return None, tracks_df, questions_df, criteria_df


def _resolve_source(path: str):
    """Returns (kind, path) where kind is 'yaml' or 'csv'."""
    if os.path.isdir(path):
        routing = os.path.join(path, ROUTING_FILE_NAME)
        if os.path.isfile(routing):
            return "yaml", routing
        if os.path.isfile(os.path.join(path, TRACKS_CSV)):
            return "csv", path
        raise CatalogError(
            f"Catalog directory has neither {ROUTING_FILE_NAME} nor {TRACKS_CSV}: {path}"
        )
    if not os.path.exists(path):
        raise CatalogError(f"Catalog not found: {path}")
    ext = os.path.splitext(path)[1].lower()
    if ext in (".yaml", ".yml"):
        return "yaml", path
    if ext == ".csv":
        return "csv", os.path.dirname(os.path.abspath(path))
    raise CatalogError(f"Unsupported catalog file type: {path}")


# ── Graph assembly ────────────────────────────────────────────────────────────

def _as_order(value):
    num = float(value)
    return int(num) if num.is_integer() else num


def _cell(value):
    """Row value with pandas missing markers (NaN, NA) read as None."""
    return None if _is_missing(value) else value


def _next_tracks(raw):
    if raw is None or (isinstance(raw, float) and pd.isna(raw)):
        return None
    if isinstance(raw, str) and not raw.strip():
        return None
    return tuple(parse_track_ids(raw))


def _entry_from_rows(tracks_df: pd.DataFrame) -> str:
    entry_ids = tracks_df.loc[tracks_df["is_entry"] == True, "track_id"].tolist()
    if not entry_ids:
        raise CatalogError("No entry track: exactly one track must set is_entry.")
    if len(entry_ids) > 1:
        raise CatalogError(f"More than one entry track: {entry_ids}")
    return entry_ids[0]


def build_graph(entry_track_id, tracks_df, questions_df, criteria_df) -> tuple[RoutingGraph, list[str]]:
    """
    Builds the RoutingGraph from normalized frames.
    Returns (graph, loader_warnings). Raises CatalogError on a bad entry
    track or duplicate ids.
    """
    warnings: list[str] = []
    track_ids = set(tracks_df["track_id"].tolist())

    questions_by_track: dict[str, list[Question]] = {}
    for row in questions_df.to_dict(orient="records"):
        tid = row["track_id"]
        if tid not in track_ids:
            warnings.append(f"Question '{row['key']}' belongs to unknown track '{tid}'.")
            continue
        questions_by_track.setdefault(tid, []).append(Question(
            key=row["key"],
            type=row["type"],
            label=row["label"],
            help_text=_cell(row["help_text"]),
            optional=bool(row["optional"]),
        ))

    criteria_by_track: dict[str, list[Criterion]] = {}
    for row in criteria_df.to_dict(orient="records"):
        tid = row["track_id"]
        if tid not in track_ids:
            warnings.append(f"Criterion on '{row['answer_key']}' belongs to unknown track '{tid}'.")
            continue
        criteria_by_track.setdefault(tid, []).append(
            Criterion(answer_key=row["answer_key"], expected_value=_cell(row["expected_value"]))
        )

    if not entry_track_id:
        entry_track_id = _entry_from_rows(tracks_df)

    tracks = []
    for row in tracks_df.to_dict(orient="records"):
        tid = row["track_id"]
        tracks.append(TrackDefinition(
            track_id=tid,
            order=_as_order(row["order"]),
            prerequisites=tuple(parse_track_ids(row["prerequisites"])),
            is_terminal=bool(row["is_terminal"]),
            mutually_exclusive_with=tuple(parse_track_ids(row["mutually_exclusive_with"])),
            eligibility_criteria=tuple(criteria_by_track.get(tid, [])),
            questions=tuple(questions_by_track.get(tid, [])),
            category=_cell(row["category"]),
            label=row["label"],
            summary=_cell(row["summary"]),
            next_tracks=_next_tracks(row["next_tracks"]),
            required=bool(row["required"]),
            description=_cell(row["description"]),
        ))

    return RoutingGraph.from_tracks(str(entry_track_id).strip(), tracks), warnings


def read_catalog(path: str) -> tuple[RoutingGraph, dict]:
    """
    Reads a catalog without failing on integrity errors.

    Returns (graph, {"errors": [...], "warnings": [...]}). Structural
    problems that prevent building a graph at all still raise CatalogError.
    """
    kind, source = _resolve_source(path)
    print(f"[INFO] Catalog source: {kind} ({source})")
    try:
        if kind == "yaml":
            entry, tracks_df, questions_df, criteria_df = _read_yaml_routing(source)
        else:
            entry, tracks_df, questions_df, criteria_df = _read_csv_dir(source)
    except (OSError, yaml.YAMLError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise CatalogError(f"Failed to read catalog at {source}: {exc}")

    tracks_df = _normalize_tracks_df(tracks_df)
    questions_df = _normalize_questions_df(questions_df)
    criteria_df = _normalize_criteria_df(criteria_df)

    graph, loader_warnings = build_graph(entry, tracks_df, questions_df, criteria_df)
    problems = find_catalog_problems(graph)
    problems["warnings"] = loader_warnings + problems["warnings"]
    return graph, problems


def load_catalog(path: str) -> RoutingGraph:
    """Load and check a track catalog. Raises CatalogError on integrity errors."""
    graph, problems = read_catalog(path)
    for warning in problems["warnings"]:
        print(f"[WARN] {warning}", file=sys.stderr)
    if problems["errors"]:
        raise CatalogError(problems["errors"])
    print(f"[OK] Loaded {len(graph)} tracks (entry: {graph.entry_track_id})")
    return graph
