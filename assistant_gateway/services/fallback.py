"""
Fallback Responder

Deterministic, keyword-driven replies used whenever the generative path is
skipped (no key, circuit open) or fails. respond() is a pure function of its
arguments: no I/O, no clock, no randomness.

Topics are an ordered list of (pattern, template) rules; the first pattern
found in the lowercased message wins. Greeting words only match as whole
words so "this" or "which" do not read as "hi".
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional

from assistant_gateway.models.domain import AssignmentContext

REASON_CIRCUIT_OPEN = "circuit_open"

Template = Callable[[Optional[AssignmentContext]], str]


# =============================================================================
# Templates
# =============================================================================


def greeting(context: Optional[AssignmentContext]) -> str:
    return (
        "👋 Hello! I'm your AI Study Assistant. I can help you with assignments, "
        "code, or concepts. What are you working on today?"
    )


def how_to_start(context: Optional[AssignmentContext]) -> str:
    if context is not None:
        description = context.description or "Review the assignment description carefully"
        return (
            f'To start **"{context.title}"**:\n\n'
            f"1. **Understand the requirements**: {description}\n"
            "2. **Plan your approach**: Break down the task into smaller steps\n"
            "3. **Start with basics**: Build incrementally and test as you go\n"
            "4. **Ask specific questions**: I'm here if you get stuck!\n\n"
            "💡 Tip: Focus on one section at a time."
        )
    return (
        "To start any assignment:\n"
        "1. Read requirements carefully\n"
        "2. Break it into smaller tasks\n"
        "3. Plan before coding/writing\n"
        "4. Test frequently\n\n"
        "What specific assignment are you working on?"
    )


def requirements(context: Optional[AssignmentContext]) -> str:
    if context is not None:
        description = (
            context.description or "Check your assignment details for specific requirements."
        )
        return (
            f"📋 **{context.title}** Requirements:\n\n"
            f"{description}\n\n"
            f"**Due Date**: {context.formatted_due_date() or 'Check your dashboard'}\n"
            f"**Max Marks**: {context.formatted_max_marks() or 'N/A'}\n\n"
            "Need help with a specific part?"
        )
    return (
        "I can explain assignment requirements! Please select an assignment "
        "or ask a specific question."
    )


def key_points(context: Optional[AssignmentContext]) -> str:
    return (
        "🎯 Key Points for Success:\n\n"
        "✅ Understand requirements fully\n"
        "✅ Follow instructions precisely\n"
        "✅ Test your work thoroughly\n"
        "✅ Submit before deadline\n"
        "✅ Ask questions when stuck\n\n"
        "What specific area do you need help with?"
    )


def resources(context: Optional[AssignmentContext]) -> str:
    return (
        "📚 Learning Resources:\n\n"
        "• **Documentation**: Official docs for your tech stack\n"
        "• **Practice**: Coding platforms (LeetCode, HackerRank)\n"
        "• **Videos**: YouTube tutorials\n"
        "• **Communities**: Stack Overflow, Reddit\n\n"
        "What topic do you want to learn more about?"
    )


def coding(context: Optional[AssignmentContext]) -> str:
    return (
        "💻 Coding Tips:\n\n"
        "1. **Start simple**: Write pseudocode first\n"
        "2. **Test frequently**: Run your code often\n"
        "3. **Debug systematically**: Use print statements\n"
        "4. **Read errors carefully**: They tell you what's wrong\n"
        "5. **Search wisely**: Google error messages\n\n"
        "What specific coding issue are you facing?"
    )


def contextual_help(context: Optional[AssignmentContext]) -> str:
    if context is not None:
        return (
            f'I\'m here to help with **"{context.title}"**!\n\n'
            "I can assist with:\n"
            "• Understanding requirements\n"
            "• Breaking down tasks\n"
            "• Coding help\n"
            "• Study strategies\n"
            "• Finding resources\n\n"
            "What specific part are you working on?"
        )
    return (
        "I'm your AI Study Assistant! 🎓\n\n"
        "I can help you with:\n"
        "• Assignment guidance\n"
        "• Coding problems\n"
        "• Concept explanations\n"
        "• Study tips\n"
        "• Resource suggestions\n\n"
        "What would you like help with?"
    )


# =============================================================================
# Rules
# =============================================================================


@dataclass(frozen=True)
class FallbackRule:
    """A topic: the pattern that selects it and the template that answers it."""

    topic: str
    pattern: re.Pattern
    template: Template

    def matches(self, lowered: str) -> bool:
        return self.pattern.search(lowered) is not None


def _substrings(*keywords: str) -> re.Pattern:
    return re.compile("|".join(re.escape(k) for k in keywords))


def _words(*keywords: str) -> re.Pattern:
    return re.compile(r"\b(?:" + "|".join(re.escape(k) for k in keywords) + r")\b")


DEFAULT_RULES: tuple[FallbackRule, ...] = (
    FallbackRule("greeting", _words("hi", "hello", "hey"), greeting),
    FallbackRule("how_to_start", _substrings("start", "begin", "how do i"), how_to_start),
    FallbackRule("requirements", _substrings("requirement", "explain", "what is"), requirements),
    FallbackRule("key_points", _substrings("key point", "important", "focus"), key_points),
    FallbackRule("resources", _substrings("resource", "learn", "study"), resources),
    FallbackRule(
        "code", _substrings("code", "python", "javascript", "program"), coding
    ),
)


class FallbackResponder:
    """
    Rule-based responder.

    Example:
        >>> FallbackResponder().respond("Can you help me start?")
        'To start any assignment:\\n1. Read requirements carefully...'
    """

    def __init__(self, rules: tuple[FallbackRule, ...] = DEFAULT_RULES) -> None:
        self._rules = rules

    @property
    def rules(self) -> tuple[FallbackRule, ...]:
        return self._rules

    def match_topic(self, message: str) -> Optional[str]:
        """Name of the first matching topic, or None."""
        lowered = (message or "").lower()
        for rule in self._rules:
            if rule.matches(lowered):
                return rule.topic
        return None

    def respond(
        self,
        message: str,
        assignment_context: Optional[AssignmentContext] = None,
        reason: Optional[str] = None,
        cooldown_remaining: int = 0,
    ) -> str:
        """
        Build a canned reply.

        Args:
            message: The student's message.
            assignment_context: Assignment to interpolate into templates.
            reason: "circuit_open" to prefix an unavailability notice.
            cooldown_remaining: Seconds left on the circuit cooldown.
        """
        if reason == REASON_CIRCUIT_OPEN:
            return (
                "⚠️ AI service is temporarily unavailable "
                f"(cooling down for ~{cooldown_remaining}s). "
                "Here's what I can help with:\n\n"
                f"{contextual_help(assignment_context)}"
            )

        lowered = (message or "").lower()
        for rule in self._rules:
            if rule.matches(lowered):
                return rule.template(assignment_context)
        return contextual_help(assignment_context)
