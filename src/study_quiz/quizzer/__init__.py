from .engine import (
    AnswerOutcome,
    OptionFeedback,
    QuizSummary,
    SessionEngine,
    SessionPhase,
    SessionState,
    WrongAnswerRecord,
)
from .errors import (
    EmptyPoolError,
    InvalidCountError,
    LoadError,
    NotAnsweredError,
    OutOfRangeError,
    QuestionTypeError,
    QuizError,
    SessionNotFinishedError,
    ValidationError,
)
from .loader import list_topics, load_question_set
from .pool import QuestionKind, QuestionPool, QuestionRecord, load_pool
from .session import QuizSessionResult, run_quiz_session
from .shuffle import shuffle
from .text import normalize

__all__ = [
    "AnswerOutcome",
    "OptionFeedback",
    "QuizSummary",
    "SessionEngine",
    "SessionPhase",
    "SessionState",
    "WrongAnswerRecord",
    "EmptyPoolError",
    "InvalidCountError",
    "LoadError",
    "NotAnsweredError",
    "OutOfRangeError",
    "QuestionTypeError",
    "QuizError",
    "SessionNotFinishedError",
    "ValidationError",
    "list_topics",
    "load_question_set",
    "QuestionKind",
    "QuestionPool",
    "QuestionRecord",
    "load_pool",
    "QuizSessionResult",
    "run_quiz_session",
    "shuffle",
    "normalize",
]
