"""Memory synthesis using an LLM.

The synthesizer turns (old memory, new facts) into a complete replacement
memory with a single completion call. The model's reply is the new memory;
it is only checked for being non-empty and within the length cap.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from ..errors import SynthesisError
from ..llm import LLMClient
from .models import BundleKind, FactBundle, ProfileAnswers

logger = logging.getLogger(__name__)

DEFAULT_MAX_MEMORY_CHARS = 8000
JOURNAL_EXCERPT_CHARS = 1500
MEDITATION_EXCERPT_CHARS = 500

SYSTEM_PROMPT = """You maintain the long-term memory of a mental health companion app.
The memory is a single block of plain text describing one person: who they are,
what they are working towards, how they have been feeling, and the themes that
keep coming back. It is read by the companion before every conversation.

Rules:
- Write in third person, in plain prose with short paragraphs. No markdown headings.
- Keep every stable fact that is still true. Drop details that no longer matter.
- Record emotional patterns and changes over time, not single moments in isolation.
- Never invent facts that are not in the memory or the new information.
- Reply with the full updated memory only, no preamble or commentary."""

UPDATE_PROMPT = """Here is the current memory about the user:

<memory>
{memory}
</memory>

New information from {source}:

<new_information>
{facts}
</new_information>

Rewrite the memory so it incorporates the new information. Return the complete
updated memory, not a list of changes."""

INITIAL_PROMPT = """A new user has just completed onboarding. Write their first memory
from the answers below.

<profile>
Name: {name}
Date of birth: {dob}
Profession: {profession}
About them, in their own words:
{about_me}
</profile>

Return the memory only."""

SUMMARY_SYSTEM_PROMPT = """You are a professional therapy assistant. Create concise summaries of
therapy conversations that capture emotional themes, progress, coping strategies
and key insights. Use the same language as the conversation."""

SUMMARY_PROMPT = """Conversation:
{conversation}

Summarize this therapy conversation in 2-3 sentences, focusing on the main topics,
emotional themes, coping strategies and insights."""

SUMMARY_UPDATE_PROMPT = """Previous conversation summary:
{summary}

New conversation segment:
{conversation}

Write an updated summary that combines the previous context with the new
conversation. Keep it to 3-4 sentences."""

SOURCE_LABELS = {
    BundleKind.MOOD_ENTRIES: "today's mood check-ins",
    BundleKind.JOURNAL_ENTRIES: "recent journal entries",
    BundleKind.CHAT_CONVERSATION: "a text chat session",
    BundleKind.VOICE_SESSION: "a voice session",
    BundleKind.VIDEO_SESSION: "a video session",
    BundleKind.MEDITATION_SESSION: "a guided meditation",
}


def format_timestamp(ts: float | None) -> str:
    """Format epoch seconds as a UTC minute-precision string."""
    if ts is None:
        return "unknown"
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def _excerpt(text: str, limit: int) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + " [...]"


def _format_duration(seconds: int | None) -> str:
    if seconds is None:
        return "unknown"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes} min {secs} s"


def _render_mood(entries: list[dict[str, Any]]) -> str:
    lines = []
    for i, entry in enumerate(entries, start=1):
        line = (
            f"{i}. {format_timestamp(entry.get('timestamp'))}: "
            f"{entry['mood']} (intensity {entry['intensity']}/10)"
        )
        if entry.get("notes"):
            line += f" - notes: {entry['notes']}"
        if entry.get("ai_insight"):
            line += f" - insight given: {entry['ai_insight']}"
        lines.append(line)
    return "\n".join(lines)


def _render_journal(entries: list[dict[str, Any]]) -> str:
    blocks = []
    for entry in entries:
        header = f"[{format_timestamp(entry.get('created_at'))}] {entry.get('title') or 'Untitled'}"
        if entry.get("tags"):
            header += f" (tags: {', '.join(entry['tags'])})"
        blocks.append(f"{header}\n{_excerpt(entry['content'], JOURNAL_EXCERPT_CHARS)}")
    return "\n\n".join(blocks)


def _render_chat(data: dict[str, Any]) -> str:
    return (
        f"Conversation: {data.get('title') or 'Untitled'}\n"
        f"Messages: {data.get('message_count', 0)}\n"
        f"Last active: {format_timestamp(data.get('updated_at'))}\n"
        f"Summary: {data['rolling_summary']}"
    )


def _render_session(data: dict[str, Any]) -> str:
    lines = [
        f"Started: {format_timestamp(data.get('start_time'))}",
        f"Duration: {_format_duration(data.get('duration'))}",
        f"Mood at start: {data.get('mood') or 'not given'}",
    ]
    if data.get("transcript_summary"):
        lines.append(f"Transcript summary: {data['transcript_summary']}")
    if data.get("ai_summary"):
        lines.append(f"Session summary: {data['ai_summary']}")
    if data.get("transcript"):
        lines.append(f"Transcript:\n{data['transcript']}")
    return "\n".join(lines)


def _render_meditation(data: dict[str, Any]) -> str:
    lines = [
        f"Completed: {format_timestamp(data.get('completed_at'))}",
        f"Duration: {_format_duration(data.get('duration'))}",
    ]
    preferences = data.get("preferences") or {}
    if preferences:
        prefs = ", ".join(f"{k}={v}" for k, v in sorted(preferences.items()))
        lines.append(f"Preferences: {prefs}")
    if data.get("script"):
        lines.append(f"Script excerpt: {_excerpt(data['script'], MEDITATION_EXCERPT_CHARS)}")
    return "\n".join(lines)


def render_bundle(bundle: FactBundle) -> str:
    """Render a fact bundle as text for the synthesis prompt.

    Raises:
        ValueError: If the bundle data does not match its kind.
    """
    data = bundle.data
    if bundle.kind in (BundleKind.MOOD_ENTRIES, BundleKind.JOURNAL_ENTRIES):
        if not isinstance(data, list):
            raise ValueError(f"{bundle.kind.value} bundle must hold a list of entries")
        if bundle.kind is BundleKind.MOOD_ENTRIES:
            return _render_mood(data)
        return _render_journal(data)

    if not isinstance(data, dict):
        raise ValueError(f"{bundle.kind.value} bundle must hold a single record")
    if bundle.kind is BundleKind.CHAT_CONVERSATION:
        return _render_chat(data)
    if bundle.kind is BundleKind.MEDITATION_SESSION:
        return _render_meditation(data)
    return _render_session(data)


def format_conversation(messages: list[dict[str, Any]]) -> str:
    """Format chat messages into a readable transcript."""
    lines = []
    for msg in messages:
        role = msg.get("role", "unknown")
        content = msg.get("content", "")
        if role == "user":
            lines.append(f"User: {content}")
        elif role == "assistant":
            lines.append(f"Companion: {content}")
        # Skip system and tool messages
    return "\n".join(lines)


class ContextSynthesizer:
    """Produces a user's new memory from their old memory and new facts."""

    def __init__(
        self,
        llm: LLMClient,
        max_memory_chars: int = DEFAULT_MAX_MEMORY_CHARS,
    ) -> None:
        """Initialize the synthesizer.

        Args:
            llm: Client for the completion endpoint.
            max_memory_chars: Longest memory accepted from the model.
        """
        self.llm = llm
        self.max_memory_chars = max_memory_chars

    def build_update_prompt(self, existing_memory: str, bundle: FactBundle) -> str:
        return UPDATE_PROMPT.format(
            memory=existing_memory.strip(),
            source=SOURCE_LABELS[bundle.kind],
            facts=render_bundle(bundle),
        )

    def build_initial_prompt(self, profile: ProfileAnswers, name: str | None = None) -> str:
        return INITIAL_PROMPT.format(
            name=name or "User",
            dob=profile.dob,
            profession=profile.profession,
            about_me=profile.about_me.strip(),
        )

    async def synthesize(self, existing_memory: str, bundle: FactBundle) -> str:
        """Fold a fact bundle into an existing memory.

        Args:
            existing_memory: The user's current memory.
            bundle: The new facts.

        Returns:
            The complete replacement memory.

        Raises:
            SynthesisError: If the LLM call fails or the reply is unusable.
        """
        prompt = self.build_update_prompt(existing_memory, bundle)
        return await self._complete(prompt, SYSTEM_PROMPT, f"{bundle.kind.value} update")

    async def synthesize_initial(
        self, profile: ProfileAnswers, name: str | None = None
    ) -> str:
        """Write a first memory from onboarding answers.

        Raises:
            SynthesisError: If the LLM call fails or the reply is unusable.
        """
        prompt = self.build_initial_prompt(profile, name)
        return await self._complete(prompt, SYSTEM_PROMPT, "initial memory")

    async def summarize_conversation(
        self,
        messages: list[dict[str, Any]],
        existing_summary: str | None = None,
    ) -> str:
        """Produce a chat conversation's rolling summary.

        Args:
            messages: The conversation messages, in order.
            existing_summary: The previous summary, folded in if present.

        Raises:
            SynthesisError: If the LLM call fails or returns nothing.
        """
        conversation = format_conversation(messages)
        if existing_summary and existing_summary.strip():
            prompt = SUMMARY_UPDATE_PROMPT.format(
                summary=existing_summary.strip(), conversation=conversation
            )
        else:
            prompt = SUMMARY_PROMPT.format(conversation=conversation)
        return await self._complete(prompt, SUMMARY_SYSTEM_PROMPT, "conversation summary")

    async def _complete(self, prompt: str, system: str, purpose: str) -> str:
        try:
            content = await self.llm.complete(prompt, system=system)
        except Exception as e:
            raise SynthesisError(f"LLM call failed for {purpose}: {e}") from e

        text = content.strip()
        if not text:
            raise SynthesisError(f"LLM returned an empty {purpose}")
        if len(text) > self.max_memory_chars:
            raise SynthesisError(
                f"LLM returned {len(text)} chars for {purpose}, "
                f"limit is {self.max_memory_chars}"
            )

        logger.debug("Synthesized %s (%d chars)", purpose, len(text))
        return text
