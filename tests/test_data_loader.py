import textwrap

import pandas as pd
import pytest
from data_loader import (
    _normalize_tracks_df,
    _safe_bool_col,
    load_catalog,
    read_catalog,
)
from errors import CatalogError
from normalizer import AnswerValue


def _write(path, text):
    path.write_text(textwrap.dedent(text).lstrip(), encoding="utf-8")
    return path


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def yaml_catalog(tmp_path):
    _write(tmp_path / "track_routing.yaml", """
        entry_track: intro
        routing:
          - track_id: intro
            file: tracks/intro.yaml
            order: 1
            category: general
            required: true
          - track_id: survey
            file: tracks/survey.yaml
            order: 2
            prerequisites: [intro]
            next_tracks: [final]
          - track_id: final
            file: tracks/final.yaml
            order: 3
            prerequisites: [survey]
            is_terminal: true
          - track_id: ghost_file
            file: tracks/missing.yaml
            order: 4
            prerequisites: [intro]
    """)
    (tmp_path / "tracks").mkdir()
    _write(tmp_path / "tracks" / "intro.yaml", """
        options:
          - id: intro
            label: Introduction
            summary: Start here.
            required_inputs:
              - key: age_over_18
                type: boolean
                label: Are you 18 or older?
              - id: nickname
                optional: true
    """)
    _write(tmp_path / "tracks" / "survey.yaml", """
        options:
          - id: survey
            label: Survey
            required_inputs:
              - key: survey.rating
                type: number
            eligibility:
              criteria_refs:
                - answer_key: age_over_18
                  expected_value: true
                - answerKey: survey.rating
                  expected_value: 5
    """)
    _write(tmp_path / "tracks" / "final.yaml", """
        options:
          - id: final
            label: Done
    """)
    return tmp_path


@pytest.fixture
def csv_catalog(tmp_path):
    _write(tmp_path / "tracks.csv", """
        track_id,title,summary,order,dependencies,next_tracks,mutually_exclusive_with,is_terminal,entry
        intro,Intro,Start,1,,,,FALSE,TRUE
        grant,Grant,,2,intro,,loan,no,no
        loan,Loan,,3,intro,,grant,0,0
        submit,,,4,grant;loan,none,,yes,
    """)
    _write(tmp_path / "questions.csv", """
        track_id,key,type,label,help_text,optional
        intro,intro.full_time,boolean,Full-time?,,false
        intro,,text,Company name,,
        grant,grant.amount,number,,,
    """)
    _write(tmp_path / "criteria.csv", """
        track_id,answer_key,expected_value,value_type
        grant,intro.full_time,true,bool
        loan,intro.full_time,,
        submit,intro.1,Acme,
    """)
    return tmp_path


# ── Helpers ───────────────────────────────────────────────────────────────────

class TestSafeBoolCol:
    def test_variants(self):
        df = pd.DataFrame({"flag": [True, 1, 0.0, "TRUE", "yes", "Y", "false", "n", None, float("nan")]})
        out = _safe_bool_col(df, "flag")["flag"].tolist()
        assert out == [True, True, False, True, True, True, False, False, False, False]

    def test_missing_column_untouched(self):
        df = pd.DataFrame({"other": [1]})
        assert list(_safe_bool_col(df, "flag").columns) == ["other"]


class TestNormalizeTracksDf:
    def test_aliases_and_defaults(self):
        df = pd.DataFrame([{"id": " intro ", "title": None, "entry": "1"}])
        out = _normalize_tracks_df(df)
        row = out.iloc[0]
        assert row["track_id"] == "intro"
        assert row["label"] == "intro"
        assert row["is_entry"] is True
        assert row["order"] == 0

    def test_no_tracks_rejected(self):
        with pytest.raises(CatalogError):
            _normalize_tracks_df(pd.DataFrame([{"track_id": "  "}]))


# ── YAML routing ──────────────────────────────────────────────────────────────

class TestYamlCatalog:
    def test_loads_graph(self, yaml_catalog):
        graph = load_catalog(str(yaml_catalog / "track_routing.yaml"))
        assert graph.entry_track_id == "intro"
        assert [t.track_id for t in graph.ordered()] == ["intro", "survey", "final", "ghost_file"]

    def test_directory_path_finds_routing_file(self, yaml_catalog):
        graph = load_catalog(str(yaml_catalog))
        assert len(graph) == 4

    def test_track_fields(self, yaml_catalog):
        graph = load_catalog(str(yaml_catalog))
        intro = graph.get("intro")
        assert intro.label == "Introduction"
        assert intro.summary == "Start here."
        assert intro.category == "general"
        assert intro.required is True
        assert intro.next_tracks is None
        assert graph.get("survey").next_tracks == ("final",)
        assert graph.get("final").is_terminal is True

    def test_questions(self, yaml_catalog):
        intro = load_catalog(str(yaml_catalog)).get("intro")
        assert intro.question_keys == ["age_over_18", "intro.nickname"]
        assert intro.questions[0].type == "boolean"
        assert intro.questions[1].type == "text"
        assert intro.questions[1].optional is True
        assert intro.questions[1].label == "intro.nickname"

    def test_criteria(self, yaml_catalog):
        survey = load_catalog(str(yaml_catalog)).get("survey")
        expected = [(c.answer_key, c.expected_value) for c in survey.eligibility_criteria]
        assert expected == [("age_over_18", True), ("survey.rating", 5)]

    def test_missing_track_file_warns(self, yaml_catalog, capsys):
        graph = load_catalog(str(yaml_catalog))
        assert graph.get("ghost_file").questions == ()
        assert "Track file not found for 'ghost_file'" in capsys.readouterr().err

    def test_logs_source_and_count(self, yaml_catalog, capsys):
        load_catalog(str(yaml_catalog))
        out = capsys.readouterr().out
        assert "[INFO] Catalog source: yaml" in out
        assert "[OK] Loaded 4 tracks (entry: intro)" in out

    def test_malformed_yaml(self, tmp_path):
        _write(tmp_path / "track_routing.yaml", "routing: [unclosed\n")
        with pytest.raises(CatalogError):
            load_catalog(str(tmp_path))

    def test_no_routing_list(self, tmp_path):
        _write(tmp_path / "track_routing.yaml", "entry_track: a\n")
        with pytest.raises(CatalogError):
            load_catalog(str(tmp_path))

    def test_dangling_prerequisite_is_fatal(self, tmp_path):
        _write(tmp_path / "track_routing.yaml", """
            entry_track: a
            routing:
              - track_id: a
              - track_id: b
                prerequisites: [ghost]
        """)
        with pytest.raises(CatalogError) as exc_info:
            load_catalog(str(tmp_path))
        assert any("ghost" in p for p in exc_info.value.problems)

    def test_unknown_entry_is_fatal(self, tmp_path):
        _write(tmp_path / "track_routing.yaml", """
            entry_track: start
            routing:
              - track_id: a
        """)
        with pytest.raises(CatalogError):
            load_catalog(str(tmp_path))


# ── CSV directory ─────────────────────────────────────────────────────────────

class TestCsvCatalog:
    def test_loads_graph(self, csv_catalog):
        graph = load_catalog(str(csv_catalog))
        assert graph.entry_track_id == "intro"
        assert len(graph) == 4

    def test_tracks_csv_path_accepted(self, csv_catalog):
        graph = load_catalog(str(csv_catalog / "tracks.csv"))
        assert "submit" in graph

    def test_track_fields(self, csv_catalog):
        graph = load_catalog(str(csv_catalog))
        submit = graph.get("submit")
        assert submit.prerequisites == ("grant", "loan")
        assert submit.is_terminal is True
        assert submit.label == "submit"
        assert submit.next_tracks == ()
        assert graph.get("grant").next_tracks is None
        assert graph.get("grant").mutually_exclusive_with == ("loan",)
        assert graph.get("intro").label == "Intro"

    def test_questions_with_default_key(self, csv_catalog):
        intro = load_catalog(str(csv_catalog)).get("intro")
        assert intro.question_keys == ["intro.full_time", "intro.1"]
        assert intro.questions[1].optional is False
        assert intro.questions[1].help_text is None

    def test_criteria_value_types(self, csv_catalog):
        graph = load_catalog(str(csv_catalog))
        assert graph.get("grant").eligibility_criteria[0].expected_value is True
        assert graph.get("loan").eligibility_criteria[0].expected_value is None
        assert graph.get("submit").eligibility_criteria[0].expected_value == "Acme"

    def test_criteria_drive_eligibility(self, csv_catalog):
        from answer_store import AnswerStore
        from completion_store import CompletionStore
        from eligibility import is_eligible

        graph = load_catalog(str(csv_catalog))
        answers = AnswerStore()
        answers.set("intro.full_time", "true", question_type="boolean")
        completion = CompletionStore(["intro"])
        assert answers.get("intro.full_time") == AnswerValue.boolean(True)
        assert is_eligible(graph.get("grant"), answers, completion, graph)
        assert not is_eligible(graph.get("loan"), answers, completion, graph)

    def test_null_criterion_matches_absent_answer(self, tmp_path):
        from answer_store import AnswerStore
        from completion_store import CompletionStore
        from eligibility import is_eligible

        _write(tmp_path / "tracks.csv", """
            track_id,order,dependencies,is_entry
            intro,1,,true
            loan,2,intro,false
        """)
        _write(tmp_path / "criteria.csv", """
            track_id,answer_key,expected_value,value_type
            loan,intro.full_time,,null
        """)
        graph = load_catalog(str(tmp_path))
        loan = graph.get("loan")
        assert loan.eligibility_criteria[0].expected_value is None
        assert loan.category is None

        completion = CompletionStore(["intro"])
        answers = AnswerStore()
        assert is_eligible(loan, answers, completion, graph)
        answers.set("intro.full_time", True)
        assert not is_eligible(loan, answers, completion, graph)

    def test_no_entry_row(self, tmp_path):
        _write(tmp_path / "tracks.csv", "track_id,order\na,1\nb,2\n")
        with pytest.raises(CatalogError):
            load_catalog(str(tmp_path))

    def test_two_entry_rows(self, tmp_path):
        _write(tmp_path / "tracks.csv", "track_id,is_entry\na,true\nb,true\n")
        with pytest.raises(CatalogError):
            load_catalog(str(tmp_path))

    def test_duplicate_track_ids(self, tmp_path):
        _write(tmp_path / "tracks.csv", "track_id,is_entry\na,true\na,false\n")
        with pytest.raises(CatalogError):
            load_catalog(str(tmp_path))

    def test_unknown_value_type(self, tmp_path):
        _write(tmp_path / "tracks.csv", "track_id,is_entry\na,true\n")
        _write(tmp_path / "criteria.csv", "track_id,answer_key,expected_value,value_type\na,k,1,date\n")
        with pytest.raises(CatalogError):
            load_catalog(str(tmp_path))

    def test_bad_boolean_value(self, tmp_path):
        _write(tmp_path / "tracks.csv", "track_id,is_entry\na,true\n")
        _write(tmp_path / "criteria.csv", "track_id,answer_key,expected_value,value_type\na,k,maybe,bool\n")
        with pytest.raises(CatalogError):
            load_catalog(str(tmp_path))

    def test_question_for_unknown_track_warns(self, tmp_path):
        _write(tmp_path / "tracks.csv", "track_id,is_entry\na,true\n")
        _write(tmp_path / "questions.csv", "track_id,key\nzzz,zzz.q\n")
        graph, problems = read_catalog(str(tmp_path))
        assert len(graph) == 1
        assert any("unknown track 'zzz'" in w for w in problems["warnings"])


class TestSourceResolution:
    def test_missing_path(self, tmp_path):
        with pytest.raises(CatalogError):
            load_catalog(str(tmp_path / "nowhere"))

    def test_empty_directory(self, tmp_path):
        with pytest.raises(CatalogError):
            load_catalog(str(tmp_path))

    def test_unsupported_file(self, tmp_path):
        _write(tmp_path / "catalog.txt", "hello\n")
        with pytest.raises(CatalogError):
            load_catalog(str(tmp_path / "catalog.txt"))


class TestSampleCatalog:
    def test_sample_catalog_is_clean(self, sample_catalog_path):
        graph, problems = read_catalog(sample_catalog_path)
        assert problems == {"errors": [], "warnings": []}
        assert graph.entry_track_id == "company_basics"
        assert graph.get("registration_submit").is_terminal is True
        assert graph.get("startup_grant").mutually_exclusive_with == ("bank_loan",)
