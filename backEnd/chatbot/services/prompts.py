"""
Prompt construction for handbook questions.

The model only sees the excerpt chosen by the relevance extractor, so
the rules keep it from answering out of general knowledge.
"""

from typing import Optional, Sequence

from handbook_layer.src.schemas import Department, DocumentDescriptor, RelevantContext

from .history import HistoryTurn

DEFAULT_UNIVERSITY = "神戸大学"

NOT_FOUND_PHRASE = "学生便覧に記載されていません"

ANSWER_RULES = (
    "- あなたの知識ではなく、上記の学生便覧の内容のみを情報源としてください。",
    "- 回答は「{audience}」の学生に関連する内容を優先してください。",
    "- 回答する際は、該当する情報が記載されているページ番号を必ず含めてください"
    "（例：「○ページに記載されています」）。",
    "- 学生便覧に記載されていない内容については、"
    f"「{NOT_FOUND_PHRASE}」と明確に回答してください。",
    "- 回答は日本語で、分かりやすく説明してください。",
)


def _persona(university: str, faculty: str, department: Optional[Department]) -> str:
    lines = [f"あなたは{university}{faculty}の学生便覧に詳しいチャットボットです。"]
    if department is not None:
        lines.append(f"ユーザーは特に「{department.name}」に関する情報を探しています。")
    lines.append(f"以下の{faculty}学生便覧の内容に基づいて、ユーザーの質問に回答してください。")
    return "\n".join(lines)


def _page_note(descriptor: DocumentDescriptor) -> Optional[str]:
    if descriptor.page_offset <= 1:
        return None
    return (
        f"※「--- PAGE n ---」はPDFのページ番号です。"
        f"冊子のページ番号はPDFの{descriptor.page_offset}ページ目から1ページとして始まります。"
    )


def _history_section(history: Sequence[HistoryTurn], limit: int) -> Optional[str]:
    if limit <= 0 or not history:
        return None
    lines = []
    for turn in list(history)[-limit:]:
        speaker = "ユーザー" if turn.is_user else "アシスタント"
        lines.append(f"{speaker}: {turn.content}")
    return "\n".join(lines)


def build_prompt(
    descriptor: DocumentDescriptor,
    context: RelevantContext,
    question: str,
    department: Optional[Department] = None,
    history: Sequence[HistoryTurn] = (),
    history_turns: int = 6,
    university: str = DEFAULT_UNIVERSITY,
) -> str:
    """
    Build the single-turn prompt sent to the chat model.

    Args:
        descriptor: Handbook being asked about
        context: Excerpt chosen by the relevance extractor
        question: The user's question
        department: Department to prioritize, if any
        history: Earlier conversation turns, oldest first
        history_turns: Maximum number of recent turns to include
        university: University name used in the persona

    Returns:
        Prompt text
    """
    faculty = descriptor.name
    audience = department.name if department is not None else faculty

    sections = [_persona(university, faculty, department)]

    page_note = _page_note(descriptor)
    if page_note:
        sections.append(page_note)

    excerpt = context.text
    sections.append(f"# {faculty}学生便覧の内容\n```\n{excerpt}\n```")
    if context.truncated:
        sections.append("※学生便覧の内容は長いため、途中で省略されています。")

    history_text = _history_section(history, history_turns)
    if history_text:
        sections.append(f"# これまでの会話\n{history_text}")

    sections.append(f"# ユーザーの質問\n{question}")

    rules = "\n".join(rule.format(audience=audience) for rule in ANSWER_RULES)
    sections.append(f"# 回答のルール\n{rules}")

    return "\n\n".join(sections)
