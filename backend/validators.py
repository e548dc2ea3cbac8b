"""
Pure validation helpers: whether a question counts as answered, which
required answers block completing a track, and catalog integrity checks
run once at load time.
No file-loading imports.
"""

from typing import Dict, List

from normalizer import answer_text
from requirements import KIND_BOOL, KIND_FILE, KIND_TEXT, QUESTION_TYPES
from unlocks import unreachable_tracks


def is_question_answered(question, answer) -> bool:
    """
    Whether a stored answer satisfies a question.

      boolean → a True/False value (native, or the text 'true'/'false')
      number  → any value whose string form is non-blank
      file    → a file reference with a name
      other   → string form non-blank after trimming
    """
    if answer is None:
        return False
    qtype = question.type
    if qtype == "boolean":
        if answer.kind == KIND_BOOL:
            return True
        return answer.kind == KIND_TEXT and str(answer.value).strip().lower() in ("true", "false")
    if qtype == "file":
        return answer.kind == KIND_FILE and bool(answer.value.name)
    return answer_text(answer).strip() != ""


def required_questions(track) -> list:
    """Non-optional questions; all questions when every one is optional."""
    required = [q for q in track.questions if not q.optional]
    return required if required else list(track.questions)


def find_missing_required_answers(track, answers) -> List[str]:
    """
    Keys of non-optional questions without a valid answer, in question order.
    An empty list means the track may be marked complete.
    """
    return [
        q.key for q in track.questions
        if not q.optional and not is_question_answered(q, answers.get(q.key))
    ]


def find_catalog_problems(graph) -> Dict[str, List[str]]:
    """
    Integrity checks for a loaded catalog.

    Returns:
      {
        "errors":   [...],   # fatal: dangling track references
        "warnings": [...],   # suspicious but usable
      }
    """
    errors: List[str] = []
    warnings: List[str] = []

    all_question_keys = set()
    for track in graph.tracks.values():
        all_question_keys.update(track.question_keys)

    for track in graph.ordered():
        tid = track.track_id
        for prereq in track.prerequisites:
            if prereq not in graph:
                errors.append(f"Track '{tid}' lists unknown prerequisite '{prereq}'.")
            elif prereq == tid:
                errors.append(f"Track '{tid}' lists itself as a prerequisite.")
        for next_id in track.next_tracks or ():
            if next_id not in graph:
                errors.append(f"Track '{tid}' lists unknown next track '{next_id}'.")
        for other in track.mutually_exclusive_with:
            if other not in graph:
                errors.append(f"Track '{tid}' is mutually exclusive with unknown track '{other}'.")

        seen_keys = set()
        for q in track.questions:
            if q.key in seen_keys:
                errors.append(f"Track '{tid}' defines question key '{q.key}' more than once.")
            seen_keys.add(q.key)
            if q.type not in QUESTION_TYPES:
                warnings.append(f"Track '{tid}' question '{q.key}' has unknown type '{q.type}'.")

        for criterion in track.eligibility_criteria:
            if criterion.answer_key not in all_question_keys:
                warnings.append(
                    f"Track '{tid}' criterion references answer key "
                    f"'{criterion.answer_key}' that no question produces."
                )

        if tid != graph.entry_track_id and not track.prerequisites:
            warnings.append(
                f"Track '{tid}' has no prerequisites and is only reachable by direct navigation."
            )
        if track.is_terminal and track.next_tracks:
            warnings.append(f"Terminal track '{tid}' declares next tracks; they are never walked.")

    entry = graph.entry
    if entry.prerequisites:
        warnings.append(
            f"Entry track '{entry.track_id}' declares prerequisites; they are ignored."
        )

    for tid in unreachable_tracks(graph):
        warnings.append(f"Track '{tid}' is not reachable from entry track '{graph.entry_track_id}'.")

    return {"errors": errors, "warnings": warnings}
