"""Error taxonomy for the planning engine.

Every failure is raised as one of these classes rather than replaced by a
silent default, so callers can tell a rejected operation from a broken one:

    - PlanValidationError: bad user input (empty title, missing custom date).
    - InvalidPresetReference: a preset name that is not part of the enumeration.
    - ExtractionFailure: the language-model collaborator failed.
    - NoPendingSuggestionError, ConversationBusyError and NothingToRetryError:
      the chat was driven out of sequence.
"""
from __future__ import annotations


class SoonishError(Exception):
    """Base class for engine errors."""


class PlanValidationError(SoonishError):
    """A plan could not be built or changed from the given input."""


class EmptyTitleError(PlanValidationError):
    def __init__(self) -> None:
        super().__init__("title must not be empty")


class MissingCustomDateError(PlanValidationError):
    def __init__(self) -> None:
        super().__init__("a custom deadline requires an explicit date")


class InvalidPresetReference(SoonishError):
    """A preset name could not be resolved against its enumeration."""

    kind = "preset"

    def __init__(self, name: str):
        super().__init__(f"invalid {self.kind} preset: {name}")
        self.name = name


class InvalidPeriodPresetError(InvalidPresetReference):
    kind = "period"


class InvalidDeadlinePresetError(InvalidPresetReference):
    kind = "deadline"


class InvalidTimeModeError(InvalidPresetReference):
    kind = "time mode"


class ExtractionFailure(SoonishError):
    """The structured extraction call failed; the turn may be retried."""


class NoPendingSuggestionError(SoonishError):
    def __init__(self) -> None:
        super().__init__("no plan suggestion is pending")


class ConversationBusyError(SoonishError):
    def __init__(self) -> None:
        super().__init__("a conversation turn is already in flight")


class NothingToRetryError(SoonishError):
    def __init__(self) -> None:
        super().__init__("the last message already has a reply")


class PlanNotFoundError(SoonishError):
    def __init__(self, plan_id: object):
        super().__init__(f"plan {plan_id} not found")
        self.plan_id = plan_id


class ConversationNotFoundError(SoonishError):
    def __init__(self, conversation_id: object):
        super().__init__(f"conversation {conversation_id} not found")
        self.conversation_id = conversation_id
