import math

from normalizer import answer_text
from prereq_parser import prerequisites_met
from requirements import KIND_BOOL, KIND_NUMBER, KIND_TEXT


def _as_float(answer) -> float | None:
    if answer.kind == KIND_NUMBER:
        return float(answer.value)
    if answer.kind == KIND_TEXT:
        try:
            num = float(str(answer.value).strip())
        except ValueError:
            return None
        return None if math.isnan(num) else num
    return None


def criterion_matches(criterion, answers) -> bool:
    """
    Compares one stored answer against a criterion's expected value.

    Matching rules, by the type of the expected value:
      bool    → a bool answer with the same value, or the text 'true'/'false'
                (trimmed, any case, as the answered check reads it)
      number  → a number answer, or numeric text, equal as floats
      None    → the answer key must be absent from the store
      str     → case-sensitive equality after trimming both sides; bool
                answers read as 'true'/'false', numbers without a trailing
                '.0', files by their name
    A criterion whose key was never answered only matches a None expectation.
    """
    expected = criterion.expected_value
    actual = answers.get(criterion.answer_key)

    if expected is None:
        return actual is None
    if actual is None:
        return False

    if isinstance(expected, bool):
        if actual.kind == KIND_BOOL:
            return actual.value is expected
        if actual.kind == KIND_TEXT:
            return str(actual.value).strip().lower() == ("true" if expected else "false")
        return False

    if isinstance(expected, (int, float)):
        actual_num = _as_float(actual)
        return actual_num is not None and actual_num == float(expected)

    return answer_text(actual).strip() == str(expected).strip()


def criteria_met(track, answers) -> bool:
    return all(criterion_matches(c, answers) for c in track.eligibility_criteria)


def failing_criteria(track, answers) -> list:
    """Criteria that currently do not hold, in declaration order."""
    return [c for c in track.eligibility_criteria if not criterion_matches(c, answers)]


def is_eligible(track, answers, completion, graph) -> bool:
    """
    A track is eligible when all of its criteria match the stored answers
    and its prerequisites are met. With no criteria this is exactly
    "prerequisites met"; criteria never override prerequisite gating.
    Unknown tracks (None) are never eligible.
    """
    if track is None:
        return False
    if track.eligibility_criteria and not criteria_met(track, answers):
        return False
    return prerequisites_met(track, completion, graph)


def is_mutually_exclusive_locked(track, completion) -> bool:
    """True when any track this one excludes has been completed."""
    if track is None:
        return False
    return any(other in completion for other in track.mutually_exclusive_with)
