"""Question answering over handbook text."""

from .answer import AnnotatedAnswer, AnswerService, EMPTY_ANSWER_FALLBACK
from .errors import AnswerError, AnswerErrorKind
from .history import HistoryTurn
from .prompts import build_prompt

__all__ = [
    "AnnotatedAnswer",
    "AnswerService",
    "EMPTY_ANSWER_FALLBACK",
    "AnswerError",
    "AnswerErrorKind",
    "HistoryTurn",
    "build_prompt",
]
