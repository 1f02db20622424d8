"""Command-line interface for mindmem.

Recording commands save an activity record and record a trigger; the
`consume` command later runs the pending trigger, the way the app does
after a page load.
"""

import argparse
import asyncio
import json
import logging
import sys
import time
import uuid
from pathlib import Path
from typing import Any

from groq import AsyncGroq

from .config import MindMemConfig, load_config
from .errors import MindMemError
from .llm import GroqLLMClient
from .logging import configure_logger, get_logger
from .memory import (
    ChatConversation,
    ContextSynthesizer,
    FactBundleBuilder,
    JournalEntry,
    MeditationRecord,
    MemoryStore,
    MemoryUpdater,
    MoodEntry,
    ProfileAnswers,
    SessionRecord,
    SessionType,
)
from .notify import ConsoleNotifier, Notifier, TelegramNotifier
from .triggers import JSONFileSlot, TriggerKind, TriggerRegistry, build_registry


def new_id() -> str:
    return uuid.uuid4().hex


def _open_store(config: MindMemConfig) -> MemoryStore:
    assert config.db_path is not None
    store = MemoryStore(config.db_path)
    store.init_db()
    return store


def _build_synthesizer(config: MindMemConfig) -> ContextSynthesizer:
    groq_client = AsyncGroq(api_key=config.groq_api_key)
    llm = GroqLLMClient(groq_client, model=config.model, temperature=config.temperature)
    return ContextSynthesizer(llm, max_memory_chars=config.max_memory_chars)


def _build_updater(config: MindMemConfig, store: MemoryStore) -> MemoryUpdater:
    return MemoryUpdater(
        store,
        _build_synthesizer(config),
        builder=FactBundleBuilder(store, journal_limit=config.journal_limit),
        event_logger=get_logger(),
    )


def _build_notifier(config: MindMemConfig) -> Notifier:
    if config.telegram_enabled:
        assert config.telegram_token is not None and config.telegram_chat_id is not None
        return TelegramNotifier.from_token(config.telegram_token, config.telegram_chat_id)
    return ConsoleNotifier(color=sys.stdout.isatty())


def _build_registry(config: MindMemConfig, store: MemoryStore) -> TriggerRegistry:
    assert config.trigger_path is not None
    return build_registry(
        _build_updater(config, store),
        JSONFileSlot(config.trigger_path),
        notifier=_build_notifier(config),
        event_logger=get_logger(),
    )


def _trigger_only_registry(config: MindMemConfig) -> TriggerRegistry:
    """Registry used just to record or inspect triggers, without an LLM client."""
    assert config.trigger_path is not None
    return TriggerRegistry(JSONFileSlot(config.trigger_path), event_logger=get_logger())


def _read_text(value: str | None, path: str | None) -> str:
    if path:
        return Path(path).read_text(encoding="utf-8")
    return value or ""


def _record(config: MindMemConfig, kind: TriggerKind, subject_id: str) -> int:
    trigger = _trigger_only_registry(config).record(kind, subject_id)
    print(f"Recorded {trigger.kind.value} trigger for {trigger.subject_id}")
    return 0


def cmd_init_user(args: argparse.Namespace, config: MindMemConfig) -> int:
    """Create a user with no memory."""
    store = _open_store(config)
    try:
        if store.get_user(args.user_id) is not None:
            print(f"Error: User '{args.user_id}' already exists.")
            return 1
        store.create_user(args.user_id, name=args.name)
    finally:
        store.close()
    print(f"Created user: {args.user_id}")
    return 0


def cmd_onboard(args: argparse.Namespace, config: MindMemConfig) -> int:
    """Create a user's first memory from onboarding answers."""
    profile = ProfileAnswers(
        dob=args.dob,
        profession=args.profession,
        about_me=_read_text(args.about, args.about_file),
    )
    store = _open_store(config)
    try:
        updater = _build_updater(config, store)
        result = asyncio.run(updater.create_initial_memory(args.user_id, profile))
    finally:
        store.close()

    if not result.success:
        print(f"Error: {result.error}")
        return 1
    print(result.memory)
    return 0


def cmd_mood(args: argparse.Namespace, config: MindMemConfig) -> int:
    """Save a mood check-in and record a mood trigger."""
    entry = MoodEntry(
        id=new_id(),
        user_id=args.user_id,
        mood=args.mood,
        intensity=args.intensity,
        timestamp=time.time(),
        notes=args.notes or "",
    )
    store = _open_store(config)
    try:
        store.add_mood_entry(entry)
    finally:
        store.close()
    return _record(config, TriggerKind.MOOD, entry.id)


def cmd_journal(args: argparse.Namespace, config: MindMemConfig) -> int:
    """Save a journal entry and record a journal trigger."""
    now = time.time()
    entry = JournalEntry(
        id=new_id(),
        user_id=args.user_id,
        title=args.title or "",
        content=_read_text(args.content, args.file),
        created_at=now,
        updated_at=now,
        tags=args.tag or [],
    )
    if not entry.content.strip():
        print("Error: Journal content is empty.")
        return 1

    store = _open_store(config)
    try:
        store.add_journal_entry(entry)
    finally:
        store.close()
    return _record(config, TriggerKind.JOURNAL, entry.id)


def _load_messages(path: str) -> list[dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list of messages")
    return data


def cmd_chat_summary(args: argparse.Namespace, config: MindMemConfig) -> int:
    """Summarize a chat transcript into its conversation and record a trigger."""
    try:
        messages = _load_messages(args.messages)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    store = _open_store(config)
    try:
        conversation_id = args.conversation_id or new_id()
        existing: str | None = None
        previous_count = 0
        if args.conversation_id:
            conversation = store.get_conversation(conversation_id, args.user_id)
            existing = conversation.rolling_summary
            previous_count = conversation.message_count
        else:
            now = time.time()
            store.add_conversation(
                ChatConversation(
                    id=conversation_id,
                    user_id=args.user_id,
                    title=args.title or "",
                    rolling_summary=None,
                    message_count=0,
                    created_at=now,
                    updated_at=now,
                )
            )

        synthesizer = _build_synthesizer(config)
        summary = asyncio.run(synthesizer.summarize_conversation(messages, existing))
        store.update_conversation_summary(
            conversation_id, args.user_id, summary, message_count=previous_count + len(messages)
        )
    finally:
        store.close()

    print(summary)
    return _record(config, TriggerKind.CHAT_SUMMARY, conversation_id)


def cmd_voice_ended(args: argparse.Namespace, config: MindMemConfig) -> int:
    """Save an ended voice session and record a trigger."""
    session = SessionRecord(
        id=new_id(),
        user_id=args.user_id,
        type=SessionType.VOICE,
        start_time=time.time() - (args.duration or 0),
        duration=args.duration,
        mood=args.mood,
        transcript_summary=_read_text(args.summary, args.summary_file) or None,
    )
    store = _open_store(config)
    try:
        store.add_session(session)
    finally:
        store.close()
    return _record(config, TriggerKind.VOICE_ENDED, session.id)


def cmd_video_ended(args: argparse.Namespace, config: MindMemConfig) -> int:
    """Save an ended video session and record a trigger."""
    session = SessionRecord(
        id=new_id(),
        user_id=args.user_id,
        type=SessionType.VIDEO,
        start_time=time.time() - (args.duration or 0),
        duration=args.duration,
        mood=args.mood,
        transcript=_read_text(None, args.transcript) or None,
        ai_summary=args.summary,
    )
    store = _open_store(config)
    try:
        store.add_session(session)
    finally:
        store.close()
    return _record(config, TriggerKind.VIDEO_ENDED, session.id)


def cmd_meditation(args: argparse.Namespace, config: MindMemConfig) -> int:
    """Save a completed meditation and record a trigger."""
    preferences: dict[str, Any] = {}
    for item in args.pref or []:
        key, sep, value = item.partition("=")
        if not sep:
            print(f"Error: Preference '{item}' must look like key=value.")
            return 1
        preferences[key] = value

    meditation = MeditationRecord(
        id=new_id(),
        user_id=args.user_id,
        script=_read_text(None, args.script),
        duration=args.duration,
        completed_at=time.time(),
        preferences=preferences,
    )
    store = _open_store(config)
    try:
        store.add_meditation(meditation)
    finally:
        store.close()
    return _record(config, TriggerKind.MEDITATION, meditation.id)


def cmd_pending(args: argparse.Namespace, config: MindMemConfig) -> int:
    """Show the pending trigger."""
    trigger = _trigger_only_registry(config).pending()
    if trigger is None:
        print("No pending trigger.")
        return 0
    print(f"{trigger.kind.value} {trigger.subject_id}")
    return 0


def cmd_consume(args: argparse.Namespace, config: MindMemConfig) -> int:
    """Run the pending trigger for a user."""
    store = _open_store(config)
    try:
        registry = _build_registry(config, store)
        result = asyncio.run(registry.consume(args.user_id))
    finally:
        store.close()

    if result is None:
        print("No pending trigger.")
        return 0
    return 0 if result.success else 1


def cmd_show(args: argparse.Namespace, config: MindMemConfig) -> int:
    """Print a user's memory."""
    store = _open_store(config)
    try:
        user = store.get_user(args.user_id)
    finally:
        store.close()

    if user is None:
        print(f"Error: User '{args.user_id}' not found.")
        return 1
    if not user.memory:
        print("(no memory yet)")
        return 0
    print(user.memory)
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="mindmem",
        description="Maintain each user's rolling memory",
    )
    parser.add_argument("-c", "--config", help="Path to config.json")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Sub-command help")

    init_parser = subparsers.add_parser("init-user", help="Create a user")
    init_parser.add_argument("user_id")
    init_parser.add_argument("--name", help="Display name")

    onboard_parser = subparsers.add_parser("onboard", help="Create the first memory")
    onboard_parser.add_argument("user_id")
    onboard_parser.add_argument("--dob", required=True, help="Date of birth")
    onboard_parser.add_argument("--profession", required=True)
    about = onboard_parser.add_mutually_exclusive_group(required=True)
    about.add_argument("--about", help="About me text")
    about.add_argument("--about-file", help="File with about me text")

    mood_parser = subparsers.add_parser("mood", help="Record a mood check-in")
    mood_parser.add_argument("user_id")
    mood_parser.add_argument("mood")
    mood_parser.add_argument("intensity", type=int, choices=range(1, 11), metavar="1-10")
    mood_parser.add_argument("--notes")

    journal_parser = subparsers.add_parser("journal", help="Record a journal entry")
    journal_parser.add_argument("user_id")
    journal_parser.add_argument("--title")
    content = journal_parser.add_mutually_exclusive_group(required=True)
    content.add_argument("--content")
    content.add_argument("--file", help="File with the entry text")
    journal_parser.add_argument("--tag", action="append", help="Tag (repeatable)")

    chat_parser = subparsers.add_parser(
        "chat-summary", help="Summarize a chat and record a trigger"
    )
    chat_parser.add_argument("user_id")
    chat_parser.add_argument("messages", help="JSON file with [{role, content}, ...]")
    chat_parser.add_argument("--conversation-id", help="Existing conversation to update")
    chat_parser.add_argument("--title")

    voice_parser = subparsers.add_parser("voice-ended", help="Record an ended voice session")
    voice_parser.add_argument("user_id")
    summary = voice_parser.add_mutually_exclusive_group()
    summary.add_argument("--summary", help="Transcript summary")
    summary.add_argument("--summary-file")
    voice_parser.add_argument("--duration", type=int, help="Seconds")
    voice_parser.add_argument("--mood", help="Mood at start")

    video_parser = subparsers.add_parser("video-ended", help="Record an ended video session")
    video_parser.add_argument("user_id")
    video_parser.add_argument("--transcript", help="Transcript file")
    video_parser.add_argument("--summary", help="AI summary")
    video_parser.add_argument("--duration", type=int, help="Seconds")
    video_parser.add_argument("--mood", help="Mood at start")

    meditation_parser = subparsers.add_parser("meditation", help="Record a meditation")
    meditation_parser.add_argument("user_id")
    meditation_parser.add_argument("--script", required=True, help="Script file")
    meditation_parser.add_argument("--duration", type=int, required=True, help="Seconds")
    meditation_parser.add_argument("--pref", action="append", help="key=value (repeatable)")

    subparsers.add_parser("pending", help="Show the pending trigger")

    consume_parser = subparsers.add_parser("consume", help="Run the pending trigger")
    consume_parser.add_argument("user_id")

    show_parser = subparsers.add_parser("show", help="Print a user's memory")
    show_parser.add_argument("user_id")

    return parser


COMMANDS = {
    "init-user": cmd_init_user,
    "onboard": cmd_onboard,
    "mood": cmd_mood,
    "journal": cmd_journal,
    "chat-summary": cmd_chat_summary,
    "voice-ended": cmd_voice_ended,
    "video-ended": cmd_video_ended,
    "meditation": cmd_meditation,
    "pending": cmd_pending,
    "consume": cmd_consume,
    "show": cmd_show,
}


def run_cli(argv: list[str] | None = None) -> int:
    """Run the CLI with given arguments.

    Args:
        argv: Command-line arguments. Uses sys.argv[1:] if None.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(Path(args.config).expanduser() if args.config else None)
    configure_logger(config.log_dir)

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args, config)
    except (MindMemError, OSError) as e:
        # OSError covers unreadable input files
        print(f"Error: {e}")
        return 1
