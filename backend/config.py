import os

from dotenv import load_dotenv

from requirements import DEFAULT_REEVALUATE_DEBOUNCE_MS, MISSING_ORDER_RANK

load_dotenv()

# ── Paths ─────────────────────────────────────────────────────────────────────
BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BACKEND_DIR)
DEFAULT_DATA_PATH = os.path.join(PROJECT_ROOT, "data")


def resolve_data_path(raw: str | None) -> str:
    """Unset → repo data/; relative → against the repo root; absolute → as is."""
    if not raw:
        return DEFAULT_DATA_PATH
    if not os.path.isabs(raw):
        return os.path.join(PROJECT_ROOT, raw)
    return raw


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, int(raw))
    except (TypeError, ValueError):
        return default


DATA_PATH = resolve_data_path(os.environ.get("DATA_PATH"))
REEVALUATE_DEBOUNCE_MS = _env_int("REEVALUATE_DEBOUNCE_MS", DEFAULT_REEVALUATE_DEBOUNCE_MS, minimum=0)
OVERVIEW_DEFAULT_ORDER = _env_int("OVERVIEW_DEFAULT_ORDER", MISSING_ORDER_RANK, minimum=0)
