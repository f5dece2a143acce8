"""Value types shared by the reconciliation core and its adapters."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Self

if TYPE_CHECKING:
    from collections.abc import Mapping


class Channel(StrEnum):
    """Where the caller should surface a message."""

    USER_NOTICE = "user-notice"
    OPERATIONAL_LOG = "operational-log"


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    NOTICE = "notice"
    INFO = "info"


@dataclass(frozen=True, slots=True)
class Message:
    """A reportable outcome with ``@placeholder`` tokens left for the caller to fill."""

    text: str
    substitutions: Mapping[str, object] = field(default_factory=dict)
    channel: Channel = Channel.USER_NOTICE
    severity: Severity | None = None

    def render(self) -> str:
        if not self.substitutions:
            return self.text
        # one pass, longest first so "@pid" cannot clobber "@pid_label"
        pattern = re.compile(
            "|".join(map(re.escape, sorted(self.substitutions, key=len, reverse=True)))
        )
        return pattern.sub(lambda match: str(self.substitutions[match.group(0)]), self.text)

    @classmethod
    def notice(cls, text: str, **substitutions: object) -> Self:
        return cls(text, _placeholders(substitutions), Channel.USER_NOTICE)

    @classmethod
    def log_error(cls, text: str, **substitutions: object) -> Self:
        return cls(text, _placeholders(substitutions), Channel.OPERATIONAL_LOG, Severity.ERROR)


def _placeholders(substitutions: Mapping[str, object]) -> dict[str, object]:
    return {f"@{name}": value for name, value in substitutions.items()}


@dataclass(slots=True)
class OperationResult:
    """Structured outcome returned by every reconciler operation."""

    success: bool = True
    messages: list[Message] = field(default_factory=list["Message"])

    @classmethod
    def ok(cls, *messages: Message) -> OperationResult:
        return cls(success=True, messages=list(messages))

    @classmethod
    def failed(cls, *messages: Message) -> OperationResult:
        return cls(success=False, messages=list(messages))

    def add(self, message: Message, *, success: bool = True) -> None:
        self.messages.append(message)
        self.success = self.success and success

    def merge(self, other: OperationResult) -> OperationResult:
        self.success = self.success and other.success
        self.messages.extend(other.messages)
        return self

    def rendered(self) -> list[str]:
        return [message.render() for message in self.messages]


@dataclass(frozen=True, slots=True)
class Association:
    """Configuration record: objects of ``content_model`` carry a Handle in ``datastream_id``."""

    content_model: str
    datastream_id: str
    transform: str


@dataclass(frozen=True, slots=True)
class HandleResponse:
    """Status reported by the Handle service for a create or delete call."""

    code: int
    error: str | None = None


@dataclass(frozen=True, slots=True)
class DerivativeHook:
    """The derivative event that triggered an operation."""

    destination_dsid: str
    source_dsid: str | None = None


@dataclass(frozen=True, slots=True)
class AttachmentResult:
    success: bool
    message: Message
