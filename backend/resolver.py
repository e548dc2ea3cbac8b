"""
Track routing resolver.

Pure operations over a RoutingGraph, an AnswerStore and a CompletionStore:
which tracks can be entered next, where the default path currently ends,
and which completed tracks no longer hold after answers change. The only
functions that write to the stores are mark_complete, reset_track and the
RoutingResolver facade's re_evaluate; everything else is read-only.

Re-evaluation is never triggered by answer writes. The caller decides when
to run it (typically once per debounced burst of edits, see debounce.py).
"""

from dataclasses import dataclass, field
from enum import Enum

from answer_store import AnswerStore
from completion_store import CompletionStore
from eligibility import criteria_met, is_eligible, is_mutually_exclusive_locked
from errors import ValidationError
from prereq_parser import prerequisites_met
from progress import overall_progress, track_progress
from unlocks import default_path_order
from validators import find_missing_required_answers


class CompletionOutcome(Enum):
    CONTINUE = "continue"
    TERMINAL_REACHED = "terminal_reached"


class TrackState(Enum):
    LOCKED = "locked"
    AVAILABLE = "available"
    COMPLETED = "completed"
    INVALID = "invalid"


@dataclass(frozen=True)
class TrackCandidate:
    track_id: str
    label: str
    summary: str
    is_eligible: bool
    is_mutually_exclusive_locked: bool

    @property
    def is_clickable(self) -> bool:
        return self.is_eligible and not self.is_mutually_exclusive_locked

    def to_dict(self) -> dict:
        return {
            "track_id": self.track_id,
            "label": self.label,
            "summary": self.summary,
            "is_eligible": self.is_eligible,
            "is_mutually_exclusive_locked": self.is_mutually_exclusive_locked,
            "is_clickable": self.is_clickable,
        }


@dataclass(frozen=True)
class ReEvaluation:
    pruned_track_ids: list[str] = field(default_factory=list)
    target_track_id: str | None = None
    # True when the caller should move to target_track_id.
    navigate: bool = False


def available_next_tracks(graph, completion, answers, current_track_id=None) -> list[TrackCandidate]:
    """
    Every uncompleted, non-current track whose prerequisites are met,
    eligible or not. Clickable candidates come first; otherwise catalog
    order ((order, track_id)) is kept.
    """
    candidates = []
    for track in graph.ordered():
        if track.track_id in completion or track.track_id == current_track_id:
            continue
        if not prerequisites_met(track, completion, graph):
            continue
        candidates.append(TrackCandidate(
            track_id=track.track_id,
            label=track.label or track.track_id,
            summary=track.summary,
            is_eligible=is_eligible(track, answers, completion, graph),
            is_mutually_exclusive_locked=is_mutually_exclusive_locked(track, completion),
        ))
    candidates.sort(key=lambda c: not c.is_clickable)
    return candidates


def mark_complete(graph, completion, answers, track_id) -> CompletionOutcome:
    """
    Records a track as completed once all of its required questions hold a
    valid answer. Raises ValidationError (nothing changes) when some do not,
    UnknownTrackError for ids outside the catalog.
    """
    track = graph.require(track_id)
    missing = find_missing_required_answers(track, answers)
    if missing:
        raise ValidationError(track_id, missing)
    completion.add(track_id)
    if track.is_terminal:
        return CompletionOutcome.TERMINAL_REACHED
    return CompletionOutcome.CONTINUE


def reset_track(graph, completion, answers, track_id) -> list[str]:
    """Clears the track's answers and completion. Returns removed answer keys."""
    track = graph.require(track_id)
    removed = answers.remove_track(track_id, track.question_keys)
    completion.discard(track_id)
    return removed


def find_default_path(graph, completion, answers) -> str:
    """
    The last valid track along the default path.

    Walks tracks in breadth-first order from the entry. A completed track
    that is still eligible advances the result; a completed track that is
    no longer eligible ends the walk there. An uncompleted track advances
    the result when it is eligible and ends the walk otherwise. The walk
    also ends once a terminal track qualifies.
    """
    last_valid = graph.entry_track_id
    for track_id in default_path_order(graph):
        track = graph.get(track_id)
        if not is_eligible(track, answers, completion, graph):
            break
        last_valid = track_id
        if track.is_terminal:
            break
    return last_valid


def prune_completion(graph, completion, answers) -> tuple[list[str], list[str]]:
    """
    Splits completed ids into (kept, pruned).

    Single flat pass: each completed track is judged by its own eligibility
    criteria only. Losing a prerequisite never evicts a track, so pruning one
    track does not evict tracks that depended on it, now or on a later call.
    """
    kept: list[str] = []
    pruned: list[str] = []
    for track_id in completion.ids():
        track = graph.get(track_id)
        if track is not None and criteria_met(track, answers):
            kept.append(track_id)
        else:
            pruned.append(track_id)
    return kept, pruned


def re_evaluate(graph, completion, answers, current_track_id=None) -> ReEvaluation:
    """
    Decides what an answer change means for the session, without mutating.

    If the current track is still eligible nothing changes. Otherwise the
    completed tracks that no longer hold are reported as pruned and the
    default path is recomputed over what remains.
    """
    if current_track_id is not None:
        current = graph.get(current_track_id)
        if is_eligible(current, answers, completion, graph):
            return ReEvaluation([], current_track_id, False)

    kept, pruned = prune_completion(graph, completion, answers)
    target = find_default_path(graph, CompletionStore(kept), answers)
    return ReEvaluation(pruned, target, target != current_track_id)


def track_state(track_id, graph, completion, answers) -> TrackState:
    track = graph.get(track_id)
    if track is None:
        return TrackState.LOCKED
    eligible = is_eligible(track, answers, completion, graph)
    if track_id in completion:
        return TrackState.COMPLETED if eligible else TrackState.INVALID
    if eligible and not is_mutually_exclusive_locked(track, completion):
        return TrackState.AVAILABLE
    return TrackState.LOCKED


def missing_required_tracks(graph, completion) -> list[str]:
    """Tracks flagged required that are not completed yet, in catalog order."""
    return [
        t.track_id for t in graph.ordered()
        if t.required and t.track_id not in completion
    ]


def completed_in_category(graph, completion, category) -> bool:
    return any(
        t.category == category and t.track_id in completion
        for t in graph.tracks.values()
    )


class RoutingResolver:
    """
    Session-facing surface: binds one catalog to one pair of stores.

    The stores are injected (or created empty) and owned by the caller;
    persistence stays outside. Calls must be serialized by the caller.
    """

    def __init__(self, graph, answers: AnswerStore | None = None, completion: CompletionStore | None = None):
        self.graph = graph
        self.answers = answers if answers is not None else AnswerStore()
        self.completion = completion if completion is not None else CompletionStore()

    # -- Queries -------------------------------------------------------------

    def is_eligible(self, track_id) -> bool:
        return is_eligible(self.graph.get(track_id), self.answers, self.completion, self.graph)

    def prerequisites_met(self, track_id) -> bool:
        return prerequisites_met(self.graph.get(track_id), self.completion, self.graph)

    def available_next_tracks(self, current_track_id=None) -> list[TrackCandidate]:
        return available_next_tracks(self.graph, self.completion, self.answers, current_track_id)

    def find_default_path(self) -> str:
        return find_default_path(self.graph, self.completion, self.answers)

    def progress(self, track_id) -> int:
        return track_progress(self.graph.get(track_id), self.answers)

    def overall_progress(self) -> int:
        return overall_progress(self.graph.ordered(), self.answers)

    def track_state(self, track_id) -> TrackState:
        return track_state(track_id, self.graph, self.completion, self.answers)

    def missing_required_tracks(self) -> list[str]:
        return missing_required_tracks(self.graph, self.completion)

    # -- Mutations -----------------------------------------------------------

    def set_answer(self, key: str, raw, track_id: str | None = None) -> None:
        """
        Records an answer under the track that asked it. Without track_id the
        owner is looked up from the catalog's question keys. Does not
        re-evaluate.
        """
        if track_id is not None:
            owner = self.graph.require(track_id)
        else:
            owner = self.graph.question_owner(key)
        question = owner.question(key) if owner is not None else None
        self.answers.set(
            key,
            raw,
            track_id=owner.track_id if owner is not None else None,
            question_type=question.type if question is not None else None,
        )

    def mark_complete(self, track_id) -> CompletionOutcome:
        return mark_complete(self.graph, self.completion, self.answers, track_id)

    def reset_track(self, track_id) -> None:
        reset_track(self.graph, self.completion, self.answers, track_id)

    def reset_all(self) -> None:
        self.answers.clear()
        self.completion.clear()

    def re_evaluate(self, current_track_id=None) -> ReEvaluation:
        """Runs re_evaluate and applies its pruning to the completion store."""
        result = re_evaluate(self.graph, self.completion, self.answers, current_track_id)
        for track_id in result.pruned_track_ids:
            self.completion.discard(track_id)
        return result
