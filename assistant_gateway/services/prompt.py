"""
Prompt assembly for the generative path.

The prompt is plain text: a system preamble, the assignment block (only
when the question is about the assignment), the tail of the conversation
and the student's message.
"""

from typing import Optional, Sequence

from assistant_gateway.models.domain import AssignmentContext, HistoryEntry

SYSTEM_PREAMBLE = (
    "You are a helpful AI Study Assistant for students. "
    "Be encouraging, clear, and practical."
)

DEFAULT_HISTORY_TURNS = 6

RELEVANCE_KEYWORDS = (
    "assignment",
    "requirement",
    "rubric",
    "marks",
    "deadline",
    "due date",
    "instructions",
)

CREATIVE_KINDS = ("poem", "essay", "story", "paragraph", "speech", "letter")


def is_context_relevant(message: str, context: Optional[AssignmentContext]) -> bool:
    """
    Whether the message is about the assignment.

    True when it mentions an assignment keyword or the assignment's own title.
    """
    if context is None:
        return False
    lowered = (message or "").lower()
    if any(keyword in lowered for keyword in RELEVANCE_KEYWORDS):
        return True
    title = (context.title or "").strip().lower()
    return bool(title) and title in lowered


def creative_kind(context: Optional[AssignmentContext]) -> Optional[str]:
    """The creative-writing kind named by the assignment title/description, if any."""
    if context is None:
        return None
    haystack = f"{context.title} {context.description or ''}".lower()
    for kind in CREATIVE_KINDS:
        if kind in haystack:
            return kind
    return None


def format_assignment_block(context: AssignmentContext) -> str:
    return (
        "Assignment Context:\n"
        f"Title: {context.title}\n"
        f"Description: {context.description or 'N/A'}\n"
        f"Due Date: {context.formatted_due_date() or 'N/A'}\n"
        f"Max Marks: {context.formatted_max_marks() or 'N/A'}"
    )


def build_prompt(
    message: str,
    context: Optional[AssignmentContext] = None,
    history: Optional[Sequence[HistoryEntry]] = None,
    history_turns: int = DEFAULT_HISTORY_TURNS,
) -> str:
    """
    Assemble the full prompt sent to the model.

    Args:
        message: The student's message.
        context: Assignment context; included only if relevant to the message.
        history: Earlier turns, oldest first; only the last history_turns are used.
        history_turns: How many trailing turns to include.
    """
    sections = [SYSTEM_PREAMBLE]

    if is_context_relevant(message, context):
        sections.append(format_assignment_block(context))
        kind = creative_kind(context)
        if kind:
            sections.append(
                f"This assignment is a creative writing task ({kind}). "
                f"If the student asks you to write it, reply with only the finished "
                f"{kind} itself: no introduction, explanation, or commentary."
            )

    recent = list(history or [])[-history_turns:] if history_turns > 0 else []
    if recent:
        turns = "\n".join(f"{entry.sender}: {entry.text}" for entry in recent)
        sections.append(f"Conversation:\n{turns}")

    sections.append(f"Student: {message.strip()}\n\nAssistant:")
    return "\n\n".join(sections)
