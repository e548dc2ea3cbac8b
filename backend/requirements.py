# Question input types understood by the answered-check and normalizer.
QUESTION_TYPES = {"boolean", "text", "long_text", "number", "file"}

DEFAULT_QUESTION_TYPE = "text"

# Value kinds carried by a normalized answer.
KIND_BOOL = "bool"
KIND_NUMBER = "number"
KIND_TEXT = "text"
KIND_FILE = "file"

# Declared value_type of an eligibility criterion in tabular catalogs.
CRITERION_VALUE_TYPES = {"bool", "number", "text", "null"}

# Truthy tokens for catalog boolean cells (TRUE/1/yes/y, any case).
BOOL_TRUTHY = {"true", "1", "yes", "y"}
BOOL_FALSY = {"false", "0", "no", "n"}

# Cell values that mean "no track ids listed".
NONE_VALUES = {"none", "none listed", "n/a", "nan", ""}

# Keys a file-reference record may use for its display name.
FILE_NAME_FIELDS = ("name", "filename", "fileName")

# Order rank used when a track has no order (overview / summary sorting).
MISSING_ORDER_RANK = 999

# Trailing debounce window for re-evaluation after answer edits.
DEFAULT_REEVALUATE_DEBOUNCE_MS = 500

ROUTING_FILE_NAME = "track_routing.yaml"
TRACKS_CSV = "tracks.csv"
QUESTIONS_CSV = "questions.csv"
CRITERIA_CSV = "criteria.csv"
