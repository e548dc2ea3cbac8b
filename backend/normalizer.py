import math
from dataclasses import dataclass

from requirements import (
    FILE_NAME_FIELDS,
    KIND_BOOL,
    KIND_FILE,
    KIND_NUMBER,
    KIND_TEXT,
)


@dataclass(frozen=True)
class FileRef:
    name: str
    data: object = None


@dataclass(frozen=True)
class AnswerValue:
    """
    A stored answer, tagged with its kind at ingestion.

    kind is one of bool / number / text / file; value holds a Python bool,
    int/float, str, or FileRef respectively.
    """
    kind: str
    value: object

    @classmethod
    def boolean(cls, value: bool) -> "AnswerValue":
        return cls(KIND_BOOL, bool(value))

    @classmethod
    def number(cls, value) -> "AnswerValue":
        return cls(KIND_NUMBER, value)

    @classmethod
    def text(cls, value: str) -> "AnswerValue":
        return cls(KIND_TEXT, value)

    @classmethod
    def file(cls, name: str, data=None) -> "AnswerValue":
        return cls(KIND_FILE, FileRef(name, data))

    def to_raw(self):
        """Plain JSON-friendly form, used when persisting a store."""
        if self.kind == KIND_FILE:
            ref = self.value
            raw = {"name": ref.name}
            if ref.data is not None:
                raw["data"] = ref.data
            return raw
        return self.value


def _file_name(record: dict) -> str | None:
    for field in FILE_NAME_FIELDS:
        name = record.get(field)
        if name:
            return str(name)
    return None


def _parse_number(raw: str):
    s = raw.strip()
    if not s:
        return None
    try:
        num = float(s)
    except ValueError:
        return None
    if math.isnan(num) or math.isinf(num):
        return None
    return int(num) if num.is_integer() and "." not in s and "e" not in s.lower() else num


def normalize_answer(raw, question_type: str | None = None) -> AnswerValue | None:
    """
    Converts a raw answer into a tagged AnswerValue, once, at the boundary.

    None (and NaN) mean "no answer". Strings are interpreted using the
    owning question's type when it is known:
      boolean  'true' / 'false'   → bool
      number   '42', '3.5'        → number
      file     'plan.pdf'         → file reference named 'plan.pdf'
    Anything else stays text, untouched. File records are dicts carrying a
    name, filename or fileName field; a record with none of them is stored
    with an empty name.
    """
    if raw is None:
        return None
    if isinstance(raw, AnswerValue):
        return raw
    if isinstance(raw, FileRef):
        return AnswerValue(KIND_FILE, raw)
    if isinstance(raw, bool):
        return AnswerValue.boolean(raw)
    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and math.isnan(raw):
            return None
        return AnswerValue.number(raw)
    if isinstance(raw, dict):
        # A record without a name is kept but never counts as answered.
        return AnswerValue.file(_file_name(raw) or "", raw.get("data"))
    if isinstance(raw, str):
        if question_type == "boolean":
            token = raw.strip().lower()
            if token in ("true", "false"):
                return AnswerValue.boolean(token == "true")
        elif question_type == "number":
            num = _parse_number(raw)
            if num is not None:
                return AnswerValue.number(num)
        elif question_type == "file" and raw.strip():
            return AnswerValue.file(raw.strip())
        return AnswerValue.text(raw)
    raise TypeError(f"Unsupported answer value type: {type(raw).__name__}")


def number_text(num) -> str:
    """5.0 → '5', 2.5 → '2.5'."""
    if isinstance(num, float) and num.is_integer():
        return str(int(num))
    return str(num)


def answer_text(answer: AnswerValue | None) -> str:
    """String form used for text comparisons and blank checks."""
    if answer is None:
        return ""
    if answer.kind == KIND_BOOL:
        return "true" if answer.value else "false"
    if answer.kind == KIND_NUMBER:
        return number_text(answer.value)
    if answer.kind == KIND_FILE:
        return answer.value.name
    return str(answer.value)


def format_answer(answer: AnswerValue | None) -> str:
    """Human-readable answer for summaries: Yes/No, file name, or the text."""
    if answer is None:
        return ""
    if answer.kind == KIND_BOOL:
        return "Yes" if answer.value else "No"
    return answer_text(answer)
