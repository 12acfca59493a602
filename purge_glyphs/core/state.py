"""
Per-font actions, failure events and the transitions between them.
"""

from collections import Counter
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from purge_glyphs.utils.logging import logger


class FontAction(str, Enum):
    """What the pipeline does with one @font-face rule."""

    IGNORE = "ignore"  # leave the rule untouched
    PRESERVE = "preserve"  # copy the font as-is
    PROCESS = "process"  # subset the font


class FailureEvent(str, Enum):
    """Recoverable failures raised while purging a stylesheet."""

    CONTENT_READ_FAILED = "content-read-failed"
    SOURCE_NOT_FOUND = "source-not-found"
    DOWNLOAD_FAILED = "download-failed"
    CONVERSION_FAILED = "conversion-failed"
    INVENTORY_FAILED = "inventory-failed"
    SUBSET_FAILED = "subset-failed"
    SOURCE_COLLISION = "source-collision"
    OUTPUT_MISSING = "output-missing"
    FORMAT_OUTPUT_FAILED = "format-output-failed"
    HASH_FAILED = "hash-failed"
    RULE_FAILED = "rule-failed"


_TRANSITIONS: dict[tuple[FontAction, FailureEvent], FontAction] = {
    (FontAction.PROCESS, FailureEvent.SUBSET_FAILED): FontAction.PRESERVE,
    (FontAction.PROCESS, FailureEvent.SOURCE_COLLISION): FontAction.PRESERVE,
    (FontAction.PROCESS, FailureEvent.OUTPUT_MISSING): FontAction.IGNORE,
    (FontAction.PRESERVE, FailureEvent.OUTPUT_MISSING): FontAction.IGNORE,
    (FontAction.PROCESS, FailureEvent.RULE_FAILED): FontAction.IGNORE,
    (FontAction.PRESERVE, FailureEvent.RULE_FAILED): FontAction.IGNORE,
}


def transition(action: FontAction, event: FailureEvent) -> FontAction:
    """
    Return the action a font falls back to after a failure.

    Events with no entry leave the action unchanged: they only cost a
    format or a source candidate, not the font.
    """
    return _TRANSITIONS.get((action, event), action)


@dataclass(frozen=True)
class Failure:
    """A swallowed failure, kept so callers can inspect what went wrong."""

    event: FailureEvent
    subject: str
    detail: str = ""


@dataclass
class FailureLog:
    """Collects failures across a whole run."""

    failures: list[Failure] = field(default_factory=list)

    def record(self, event: FailureEvent, subject: str, detail: str = "") -> Failure:
        failure = Failure(event, subject, detail)
        self.failures.append(failure)
        logger.debug(f"{event.value}: {subject} {detail}".rstrip())
        return failure

    def count(self, event: FailureEvent | None = None) -> int:
        if event is None:
            return len(self.failures)
        return sum(1 for failure in self.failures if failure.event is event)

    def summary(self) -> Counter:
        return Counter(failure.event for failure in self.failures)

    def __iter__(self) -> Iterator[Failure]:
        return iter(self.failures)

    def __len__(self) -> int:
        return len(self.failures)
