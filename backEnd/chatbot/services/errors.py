"""
Answer service error taxonomy.

Every failure the chat endpoint can report maps to one ``AnswerErrorKind``,
which fixes both the HTTP status and the user-facing message.
"""

from enum import Enum
from typing import Optional


class AnswerErrorKind(str, Enum):
    """Failure categories reported to the user."""

    BAD_REQUEST = "bad_request"
    UNKNOWN_DOCUMENT = "unknown_document"
    UNKNOWN_DEPARTMENT = "unknown_department"
    HANDBOOK_UNAVAILABLE = "handbook_unavailable"
    RATE_LIMITED = "rate_limited"
    UPSTREAM = "upstream"


HTTP_STATUS = {
    AnswerErrorKind.BAD_REQUEST: 400,
    AnswerErrorKind.UNKNOWN_DOCUMENT: 400,
    AnswerErrorKind.UNKNOWN_DEPARTMENT: 400,
    AnswerErrorKind.HANDBOOK_UNAVAILABLE: 500,
    AnswerErrorKind.RATE_LIMITED: 429,
    AnswerErrorKind.UPSTREAM: 500,
}

USER_MESSAGES = {
    AnswerErrorKind.BAD_REQUEST: "メッセージ、学部、学科の指定が必要です",
    AnswerErrorKind.UNKNOWN_DOCUMENT: "指定された学部は存在しません",
    AnswerErrorKind.UNKNOWN_DEPARTMENT: "指定された学科は存在しません",
    AnswerErrorKind.HANDBOOK_UNAVAILABLE: "学生便覧の読み込みに失敗しました。",
    AnswerErrorKind.RATE_LIMITED: (
        "AIの利用上限に達しました。{seconds}秒ほど待ってから再度お試しください。"
    ),
    AnswerErrorKind.UPSTREAM: "AIからの応答取得に失敗しました",
}

MALFORMED_REQUEST_MESSAGE = "リクエスト形式が正しくありません"
INTERNAL_ERROR_MESSAGE = "サーバーエラーが発生しました"


class AnswerError(Exception):
    """
    Classified failure of a question-answering request.

    Attributes:
        kind: Failure category
        detail: Internal description for logs, never shown to the user
        retry_after_seconds: Suggested wait, set for RATE_LIMITED only
    """

    def __init__(
        self,
        kind: AnswerErrorKind,
        detail: Optional[str] = None,
        retry_after_seconds: Optional[int] = None,
        user_message: Optional[str] = None,
    ):
        self.kind = kind
        self.detail = detail or kind.value
        self.retry_after_seconds = retry_after_seconds
        self._user_message = user_message
        super().__init__(self.detail)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.kind]

    @property
    def user_message(self) -> str:
        if self._user_message:
            return self._user_message
        message = USER_MESSAGES[self.kind]
        if self.kind == AnswerErrorKind.RATE_LIMITED:
            return message.format(seconds=self.retry_after_seconds)
        return message

    def to_payload(self) -> dict:
        """Render the error body returned by the chat endpoint."""
        payload = {"error": self.user_message}
        if self.retry_after_seconds is not None:
            payload["retryAfter"] = self.retry_after_seconds
        return payload
