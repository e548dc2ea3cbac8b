import pytest
from answer_store import AnswerStore
from catalog import Question, TrackDefinition
from progress import answered_counts, overall_progress, round_percent, track_progress


@pytest.fixture
def track():
    return TrackDefinition("t", questions=(
        Question("t.a", "boolean"),
        Question("t.b", "boolean"),
        Question("t.note", "long_text", optional=True),
    ))


class TestRoundPercent:
    def test_half_up(self):
        assert round_percent(0.125) == 13
        assert round_percent(0.5) == 50
        assert round_percent(1 / 3) == 33
        assert round_percent(2 / 3) == 67

    def test_clamped(self):
        assert round_percent(1.5) == 100
        assert round_percent(-0.2) == 0


class TestTrackProgress:
    def test_counts_required_only(self, track):
        answers = AnswerStore({"t.a": True, "t.note": "hi"})
        assert track_progress(track, answers) == 50

    def test_false_answer_counts(self, track):
        answers = AnswerStore({"t.a": False, "t.b": False})
        assert track_progress(track, answers) == 100

    def test_no_questions(self):
        assert track_progress(TrackDefinition("empty"), AnswerStore()) == 0

    def test_unknown_track(self):
        assert track_progress(None, AnswerStore()) == 0

    def test_all_optional_measured_against_all(self):
        track = TrackDefinition("t", questions=(
            Question("x", optional=True), Question("y", optional=True),
            Question("z", optional=True), Question("w", optional=True),
        ))
        assert track_progress(track, AnswerStore({"x": "1"})) == 25

    def test_answered_counts_over_every_question(self, track):
        assert answered_counts(track, AnswerStore({"t.note": "hi"})) == (1, 3)


class TestOverallProgress:
    def test_mean_of_tracks(self, track):
        other = TrackDefinition("o", questions=(Question("o.a"),))
        answers = AnswerStore({"t.a": True, "o.a": "x"})
        # (50 + 100) / 2
        assert overall_progress([track, other], answers) == 75

    def test_mean_rounds_half_up(self):
        a = TrackDefinition("a", questions=(Question("a.1"),))
        b = TrackDefinition("b", questions=(Question("b.1"), Question("b.2"),
                                            Question("b.3"), Question("b.4"),
                                            Question("b.5"), Question("b.6"),
                                            Question("b.7"), Question("b.8")))
        answers = AnswerStore({"b.1": "x"})
        # b → 13 (12.5 half-up), mean 6.5 → 7
        assert overall_progress([a, b], answers) == 7

    def test_empty(self):
        assert overall_progress([], AnswerStore()) == 0
