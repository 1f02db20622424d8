"""Exceptions raised by the memory pipeline."""


class MindMemError(Exception):
    """Base class for all mindmem errors."""


class AuthorizationError(MindMemError):
    """A subject record was requested by a user who does not own it."""

    def __init__(self, kind: str, subject_id: str, user_id: str) -> None:
        self.kind = kind
        self.subject_id = subject_id
        self.user_id = user_id
        super().__init__(f"{kind} '{subject_id}' does not belong to user '{user_id}'")


class SubjectNotFoundError(MindMemError):
    """A subject record does not exist."""

    def __init__(self, kind: str, subject_id: str) -> None:
        self.kind = kind
        self.subject_id = subject_id
        super().__init__(f"{kind} '{subject_id}' not found")


class SynthesisError(MindMemError):
    """The LLM call failed or returned an unusable memory."""


class MissingPrerequisiteError(MindMemError):
    """The data needed for a memory update is not there yet.

    The updater reports this as a failed result instead of raising.
    """
