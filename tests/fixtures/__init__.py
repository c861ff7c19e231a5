"""Shared testing fixtures for the study_quiz test suite."""

from .questions import (  # noqa: F401
    make_records,
    scripted_input,
    sample_question_set,
)
from .workspace import WorkspaceBuilder, build_tree  # noqa: F401

__all__ = [
    "WorkspaceBuilder",
    "build_tree",
    "make_records",
    "sample_question_set",
    "scripted_input",
]
