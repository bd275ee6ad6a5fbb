"""
Answer orchestration for handbook questions.

Flow for one question:
1. Validate the request and resolve the handbook and department
2. Load the handbook text through the shared store
3. Pick the relevant excerpt within the character budget
4. Ask the chat model, bounded by a timeout
5. Classify any failure into an ``AnswerError``
"""

import asyncio
import logging
from typing import Optional, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage
from pydantic import BaseModel, Field

from handbook_layer.src.descriptors import DescriptorRegistry
from handbook_layer.src.errors import StoreError, StoreErrorKind
from handbook_layer.src.relevance import DEFAULT_CONTEXT_LINES, extract_relevant
from handbook_layer.src.store import HandbookStore

from ..observability.tracing import HandbookTracer, span_metadata
from ..utils.rate_limit import is_rate_limit_error, retry_after_seconds
from .errors import AnswerError, AnswerErrorKind
from .history import HistoryTurn
from .prompts import DEFAULT_UNIVERSITY, build_prompt

logger = logging.getLogger(__name__)


EMPTY_ANSWER_FALLBACK = "AIから有効な回答を得られませんでした。"

DEFAULT_MAX_CONTEXT_CHARS = 30000
DEFAULT_LLM_TIMEOUT_SECONDS = 60.0
DEFAULT_RATE_LIMIT_RETRY_AFTER = 60
DEFAULT_HISTORY_TURNS = 6


# =============================================================================
# Schemas
# =============================================================================


class AnnotatedAnswer(BaseModel):
    """Model answer plus how the context behind it was chosen."""

    text: str = Field(..., description="Answer text shown to the user")
    document_id: str = Field(..., description="Handbook that was consulted")
    department_id: Optional[str] = Field(default=None)
    context_truncated: bool = Field(
        default=False, description="Excerpt was cut at the character budget"
    )
    used_fallback: bool = Field(
        default=False, description="No keyword matched; document prefix was used"
    )


def message_text(message) -> str:
    """Get the plain text of a chat model reply."""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content.strip()
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts).strip()


# =============================================================================
# Answer Service
# =============================================================================


class AnswerService:
    """
    Answers questions about one handbook at a time.

    Holds no per-request state; the store is the only shared resource.
    """

    def __init__(
        self,
        registry: DescriptorRegistry,
        store: HandbookStore,
        llm: BaseChatModel,
        max_context_chars: int = DEFAULT_MAX_CONTEXT_CHARS,
        context_lines: int = DEFAULT_CONTEXT_LINES,
        llm_timeout_seconds: float = DEFAULT_LLM_TIMEOUT_SECONDS,
        rate_limit_retry_after: int = DEFAULT_RATE_LIMIT_RETRY_AFTER,
        history_turns: int = DEFAULT_HISTORY_TURNS,
        university: str = DEFAULT_UNIVERSITY,
        tracer: Optional[HandbookTracer] = None,
    ):
        self.registry = registry
        self.store = store
        self.llm = llm
        self.max_context_chars = max_context_chars
        self.context_lines = context_lines
        self.llm_timeout_seconds = llm_timeout_seconds
        self.rate_limit_retry_after = rate_limit_retry_after
        self.history_turns = history_turns
        self.university = university
        self.tracer = tracer

    async def answer(
        self,
        query: str,
        document_id: str,
        department_id: Optional[str] = None,
        history: Sequence[HistoryTurn] = (),
    ) -> AnnotatedAnswer:
        """
        Answer a question from one handbook.

        Args:
            query: The user's question
            document_id: Handbook identifier (faculty key)
            department_id: Department to prioritize, if any
            history: Earlier conversation turns, oldest first

        Returns:
            AnnotatedAnswer with the model's text

        Raises:
            AnswerError: Classified failure, see ``AnswerErrorKind``
        """
        query = (query or "").strip()
        document_id = (document_id or "").strip()
        department_id = (department_id or "").strip() or None

        if not query or not document_id:
            raise AnswerError(AnswerErrorKind.BAD_REQUEST, "Missing message or faculty")

        descriptor = self.registry.get(document_id)
        if descriptor is None:
            raise AnswerError(
                AnswerErrorKind.UNKNOWN_DOCUMENT, f"Unknown handbook '{document_id}'"
            )

        department = None
        if department_id is not None:
            department = descriptor.get_department(department_id)
            if department is None:
                raise AnswerError(
                    AnswerErrorKind.UNKNOWN_DEPARTMENT,
                    f"Unknown department '{department_id}' in '{document_id}'",
                )

        if self.tracer is None:
            return await self._answer(query, descriptor, department_id, department, history)

        metadata = span_metadata(document_id=document_id, department_id=department_id)
        with self.tracer.span("handbook_answer", **metadata):
            return await self._answer(query, descriptor, department_id, department, history)

    async def _answer(self, query, descriptor, department_id, department, history):
        document_id = descriptor.document_id

        try:
            entry = await self.store.get_entry(document_id)
        except StoreError as e:
            if e.kind == StoreErrorKind.UNKNOWN_DOCUMENT:
                raise AnswerError(AnswerErrorKind.UNKNOWN_DOCUMENT, str(e)) from e
            logger.error(f"Handbook load failed for {document_id}: {e}")
            raise AnswerError(AnswerErrorKind.HANDBOOK_UNAVAILABLE, str(e)) from e

        context = extract_relevant(
            entry.text,
            query,
            max_chars=self.max_context_chars,
            context_lines=self.context_lines,
        )
        logger.info(
            f"Context for {document_id}: {len(context.text)} chars, "
            f"{context.matched_lines} matched lines"
            f"{', truncated' if context.truncated else ''}"
            f"{', fallback' if context.used_fallback else ''}"
        )
        if self.tracer is not None:
            self.tracer.log_answer(
                document_id,
                department_id,
                context_chars=len(context.text),
                context_truncated=context.truncated,
                used_fallback=context.used_fallback,
            )

        prompt = build_prompt(
            descriptor,
            context,
            query,
            department=department,
            history=history,
            history_turns=self.history_turns,
            university=self.university,
        )
        text = await self._generate(prompt)

        return AnnotatedAnswer(
            text=text,
            document_id=document_id,
            department_id=department_id,
            context_truncated=context.truncated,
            used_fallback=context.used_fallback,
        )

    async def _generate(self, prompt: str) -> str:
        """Call the chat model and classify its failures."""
        try:
            message = await asyncio.wait_for(
                self.llm.ainvoke([HumanMessage(content=prompt)]),
                timeout=self.llm_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"LLM call timed out after {self.llm_timeout_seconds}s")
            raise AnswerError(AnswerErrorKind.UPSTREAM, "LLM call timed out") from e
        except Exception as e:
            if is_rate_limit_error(e):
                retry_after = retry_after_seconds(e, self.rate_limit_retry_after)
                logger.warning(f"LLM rate limited, retry after {retry_after}s: {e}")
                raise AnswerError(
                    AnswerErrorKind.RATE_LIMITED,
                    str(e),
                    retry_after_seconds=retry_after,
                ) from e
            logger.error(f"LLM call failed: {e}")
            raise AnswerError(AnswerErrorKind.UPSTREAM, str(e)) from e

        text = message_text(message)
        if not text:
            logger.warning("LLM returned an empty answer")
            return EMPTY_ANSWER_FALLBACK
        return text
