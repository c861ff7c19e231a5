from __future__ import annotations

import logging

import pytest

from study_quiz.quizzer import loader
from study_quiz.quizzer.errors import LoadError, ValidationError


def test_list_topics_sorted_json_stems(workspace):
    root = workspace.create(
        {
            "sets": {
                "physics.json": "[]",
                "Biology.json": "[]",
                "chemistry.JSON": "[]",
                "notes.txt": "skip",
                "nested": {"inner.json": "[]"},
            }
        }
    )

    assert loader.list_topics(root / "sets") == [
        "Biology",
        "chemistry",
        "physics",
    ]


def test_list_topics_missing_dir(tmp_path):
    assert loader.list_topics(tmp_path / "absent") == []


def test_resolve_question_set(workspace):
    root = workspace.root
    explicit = workspace.write_question_set("elsewhere/custom.json", [])

    assert loader.resolve_question_set("materials", root) == (
        root / "materials.json"
    )
    assert loader.resolve_question_set("materials.json", root) == (
        root / "materials.json"
    )
    assert loader.resolve_question_set(str(explicit), root) == explicit


def test_load_question_set(workspace, questions, caplog):
    workspace.write_question_set("sets/materials.json", questions)

    with caplog.at_level(logging.INFO, logger="study_quiz.quizzer.loader"):
        pool = loader.load_question_set("materials", workspace.root / "sets")

    assert pool.topic == "materials"
    assert len(pool) == 5
    assert "Loaded question set" in caplog.text


def test_load_question_set_missing(tmp_path, caplog):
    with caplog.at_level(logging.ERROR, logger="study_quiz.quizzer.loader"):
        with pytest.raises(LoadError, match="not found"):
            loader.load_question_set("ghost", tmp_path)

    assert "Could not load question set" in caplog.text


def test_load_question_set_invalid_json(workspace):
    workspace.write("sets/broken.json", "[{'question': }")

    with pytest.raises(LoadError, match="not valid JSON"):
        loader.load_question_set("broken", workspace.root / "sets")


def test_load_question_set_bad_encoding(workspace):
    workspace.write("sets/latin.json", b"\xff\xfe\x00[")

    with pytest.raises(LoadError, match="Failed to load"):
        loader.load_question_set("latin", workspace.root / "sets")


@pytest.mark.parametrize(
    "body, reason",
    [([], "empty"), ({"questions": []}, "malformed")],
)
def test_load_question_set_validation(workspace, body, reason):
    workspace.write_question_set("sets/topic.json", body)

    with pytest.raises(ValidationError) as excinfo:
        loader.load_question_set("topic", workspace.root / "sets")

    assert excinfo.value.reason == reason
