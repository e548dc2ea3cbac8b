"""
Read-only session views: the per-track overview (started, current and
completed tracks with progress) and the answered-questions summary shown
after the terminal track.
"""

from config import OVERVIEW_DEFAULT_ORDER
from eligibility import is_eligible
from normalizer import format_answer
from progress import answered_counts, track_progress
from resolver import track_state
from validators import is_question_answered


def _order_rank(track, missing_rank: int) -> float:
    # A zero/blank order sorts last, as unset orders do in the catalog UI.
    return track.order if track.order else missing_rank


def build_overview(graph, completion, answers, current_track_id=None, missing_rank: int = OVERVIEW_DEFAULT_ORDER) -> list[dict]:
    """
    One row per track that is completed, current, or has any answer.

    Rows are ordered by track order, then current first, then completed.
    answered_count / total_questions count every question of the track.
    """
    rows = []
    for track in graph.tracks.values():
        tid = track.track_id
        is_completed = tid in completion
        is_current = tid == current_track_id
        has_answers = bool(answers.keys_for_track(tid)) or any(
            q.key in answers for q in track.questions
        )
        if not (is_completed or is_current or has_answers):
            continue
        answered, total = answered_counts(track, answers)
        rows.append({
            "track_id": tid,
            "label": track.label or tid,
            "summary": track.summary,
            "category": track.category,
            "state": track_state(tid, graph, completion, answers).value,
            "is_current": is_current,
            "is_completed": is_completed,
            "is_eligible": is_eligible(track, answers, completion, graph),
            "progress": track_progress(track, answers),
            "answered_count": answered,
            "total_questions": total,
            "_rank": _order_rank(track, missing_rank),
        })

    rows.sort(key=lambda r: (r["_rank"], not r["is_current"], not r["is_completed"]))
    for row in rows:
        del row["_rank"]
    return rows


def build_answer_summary(graph, completion, answers, missing_rank: int = OVERVIEW_DEFAULT_ORDER) -> list[dict]:
    """
    Answered questions grouped by track, for the end-of-session summary.

    Returns:
      [
        {
          "track_id": "business_plan",
          "label": "Business plan",
          "category": "general",
          "status": "completed",          # or "in_progress"
          "answers": [{"key": ..., "label": ..., "answer": "Yes"}, ...],
        },
        ...
      ]
    Tracks without any answered question are left out, completed or not.
    """
    sections = []
    for track in sorted(graph.tracks.values(), key=lambda t: (_order_rank(t, missing_rank), t.track_id)):
        items = []
        for q in track.questions:
            answer = answers.get(q.key)
            if not is_question_answered(q, answer):
                continue
            items.append({
                "key": q.key,
                "label": q.label or q.key,
                "answer": format_answer(answer),
            })
        if not items:
            continue
        sections.append({
            "track_id": track.track_id,
            "label": track.label or track.track_id,
            "category": track.category,
            "status": "completed" if track.track_id in completion else "in_progress",
            "answers": items,
        })
    return sections
