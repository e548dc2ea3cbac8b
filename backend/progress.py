import math

from validators import is_question_answered, required_questions


def round_percent(ratio: float) -> int:
    """Half-up rounding to a whole percent (12.5 → 13), clamped to 0..100."""
    return max(0, min(100, int(math.floor(ratio * 100 + 0.5))))


def answered_counts(track, answers, questions=None) -> tuple[int, int]:
    """(answered, total) over `questions`, defaulting to every question."""
    if questions is None:
        questions = list(track.questions)
    answered = sum(1 for q in questions if is_question_answered(q, answers.get(q.key)))
    return answered, len(questions)


def track_progress(track, answers) -> int:
    """
    Percent of a track's required questions that are answered.

    A track whose questions are all optional is measured against all of
    them. A track without questions (or an unknown track) reports 0.
    """
    if track is None:
        return 0
    answered, total = answered_counts(track, answers, required_questions(track))
    if total == 0:
        return 0
    return round_percent(answered / total)


def overall_progress(tracks, answers) -> int:
    """Mean of per-track progress, rounded half-up. No tracks → 0."""
    tracks = list(tracks)
    if not tracks:
        return 0
    total = sum(track_progress(t, answers) for t in tracks)
    return int(math.floor(total / len(tracks) + 0.5))
