"""Domain model for tracked intervals and the token classifier that builds them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Iterable, NamedTuple, Optional

TAG_PREFIX = "+"
PROJECT_PREFIX_SHORT = "proj:"
PROJECT_PREFIX = "project:"
REF_PREFIX = "ref:"


@dataclass(slots=True)
class Interval:
    """A span of tracked activity.

    ``end`` is ``None`` while the interval is running. Entries recorded as a
    bare amount of time on a day carry ``begin == end`` at midnight and keep
    the amount in ``duration``.
    """

    id: str = ""
    begin: Optional[datetime] = None
    end: Optional[datetime] = None
    duration: timedelta = field(default_factory=timedelta)
    project: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    ref: Optional[str] = None
    annotation: str = ""
    raw: str = ""

    @classmethod
    def from_tokens(cls, tokens: Iterable[str]) -> "Interval":
        interval = cls()
        classify_tokens(interval, tokens)
        return interval

    @property
    def is_open(self) -> bool:
        return self.end is None

    def get_duration(self, now: Optional[datetime] = None) -> timedelta:
        if self.begin is not None and self.end is not None and self.end > self.begin:
            return self.end - self.begin
        if self.duration:
            return self.duration
        if self.begin is not None and self.end is None:
            return (now or datetime.now()) - self.begin
        return timedelta(0)

    def tokens(self) -> list[str]:
        """Tokens rebuilt from the fields; ``raw`` goes stale after a re-annotation."""
        tokens = self.annotation.split()
        if self.project:
            tokens.append(f"{PROJECT_PREFIX_SHORT}{self.project}")
        tokens.extend(f"{TAG_PREFIX}{tag}" for tag in self.tags)
        if self.ref:
            tokens.append(f"{REF_PREFIX}{self.ref}")
        return tokens


def _add_tag(interval: Interval, value: str) -> None:
    interval.tags.append(value)


def _set_project(interval: Interval, value: str) -> None:
    interval.project = value


def _set_ref(interval: Interval, value: str) -> None:
    interval.ref = value


class TokenRule(NamedTuple):
    prefix: str
    apply: Callable[[Interval, str], None]

    def matches(self, token: str) -> bool:
        return token.startswith(self.prefix)


# Evaluated in order, first match wins. Anything unmatched is annotation text.
TOKEN_RULES: tuple[TokenRule, ...] = (
    TokenRule(TAG_PREFIX, _add_tag),
    TokenRule(PROJECT_PREFIX_SHORT, _set_project),
    TokenRule(PROJECT_PREFIX, _set_project),
    TokenRule(REF_PREFIX, _set_ref),
)


def classify_tokens(interval: Interval, tokens: Iterable[str]) -> Interval:
    """Distribute ``tokens`` over tags, project, ref and annotation.

    The annotation is rebuilt from scratch so that re-annotating a running
    interval replaces its text; tags, project and ref accumulate.
    """
    tokens = list(tokens)
    interval.raw = " ".join(tokens)
    interval.annotation = ""
    for token in tokens:
        for rule in TOKEN_RULES:
            if rule.matches(token):
                rule.apply(interval, token[len(rule.prefix):])
                break
        else:
            interval.annotation = f"{interval.annotation} {token}".strip(" ")
    return interval
