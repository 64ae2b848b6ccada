"""
Markdown export of a conversation.

Pure rendering: no I/O, no store access.
"""

import re

from tenq.domain.entities.conversation import TOTAL_QUESTIONS, ConversationWithMessages

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def export_filename(title: str) -> str:
    """Download name for a conversation: every non-alphanumeric becomes '_'."""
    return f"{_UNSAFE_FILENAME_CHARS.sub('_', title)}.md"


def export_to_markdown(detail: ConversationWithMessages) -> str:
    conversation = detail.conversation
    created = conversation.created_at.strftime("%Y-%m-%d %H:%M:%S")
    status = "Completed" if conversation.completed else "In Progress"

    parts = [
        f"# {conversation.title}\n\n",
        f"**Created:** {created}\n\n",
        f"**Status:** {status}\n\n",
        "---\n\n",
    ]

    for number in range(1, TOTAL_QUESTIONS + 1):
        question = detail.question_at(number)
        if question is None:
            continue
        parts.append(f"## Question {number}\n\n{question.content}\n\n")
        response = detail.response_at(number)
        if response is not None:
            parts.append(f"### Response\n\n{response.content}\n\n")
        parts.append("---\n\n")

    if conversation.summary:
        parts.append(f"## Summary\n\n{conversation.summary}\n\n")

    return "".join(parts)
