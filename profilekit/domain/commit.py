"""
Conventional-commit domain objects for profilekit.

A commit subject is classified as ACCEPT or REJECT by a single pure
function, ``validate_subject``. Everything that reads messages from git or
from the commit-msg file goes through it.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, Iterable, Optional, Sequence

from ..config import COMMIT_TYPES

MAX_SUBJECT_LENGTH = 72
ALLOWED_PREFIXES = ("Merge ", "Revert ", "Auto-merge")
SCOPE_PATTERN = r"[a-z0-9_-]+"


class Verdict(Enum):
    """Outcome of validating a commit subject."""
    ACCEPT = "accept"
    REJECT = "reject"


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating one commit subject."""
    subject: str
    verdict: Verdict
    reason: Optional[str] = None
    commit_type: Optional[str] = None
    scope: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.verdict is Verdict.ACCEPT

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'subject': self.subject,
            'verdict': self.verdict.value,
        }
        if self.reason:
            result['reason'] = self.reason
        if self.commit_type:
            result['type'] = self.commit_type
        if self.scope:
            result['scope'] = self.scope
        return result


def build_subject_pattern(types: Iterable[str] = COMMIT_TYPES) -> "re.Pattern[str]":
    """Compile the ``type(scope): description`` grammar for the given types.

    Use with ``fullmatch``; the description may not span lines.
    """
    alternatives = "|".join(re.escape(t) for t in types)
    return re.compile(rf"(?P<type>{alternatives})(?:\((?P<scope>{SCOPE_PATTERN})\))?: (?P<description>.+)")


_DEFAULT_PATTERN = build_subject_pattern()


def validate_subject(
    subject: str,
    types: Optional[Sequence[str]] = None,
    max_length: int = MAX_SUBJECT_LENGTH,
    allowed_prefixes: Sequence[str] = ALLOWED_PREFIXES,
) -> ValidationResult:
    """
    Classify a commit subject as ACCEPT or REJECT.

    Subjects starting with one of ``allowed_prefixes`` (merge and revert
    commits generated by git) are accepted as-is. Anything else must match
    ``type(scope): description`` with a known type and stay within
    ``max_length`` characters.

    Args:
        subject: Single-line commit subject
        types: Accepted type tokens (defaults to the conventional set)
        max_length: Longest accepted subject, in characters
        allowed_prefixes: Prefixes that bypass the grammar

    Returns:
        ValidationResult with the verdict and, on REJECT, the reason
    """
    if subject is None or not subject.strip():
        return ValidationResult(subject or "", Verdict.REJECT, "Commit subject is empty")

    for prefix in allowed_prefixes:
        if subject.startswith(prefix):
            return ValidationResult(subject, Verdict.ACCEPT)

    pattern = _DEFAULT_PATTERN if types is None else build_subject_pattern(types)
    match = pattern.fullmatch(subject)
    if not match:
        known = ", ".join(types if types is not None else COMMIT_TYPES)
        return ValidationResult(
            subject,
            Verdict.REJECT,
            f"Subject must look like 'type(scope): description' where type is one of: {known}",
        )

    if len(subject) > max_length:
        return ValidationResult(
            subject,
            Verdict.REJECT,
            f"Subject is {len(subject)} characters long; the limit is {max_length}",
            commit_type=match.group('type'),
            scope=match.group('scope'),
        )

    return ValidationResult(
        subject,
        Verdict.ACCEPT,
        commit_type=match.group('type'),
        scope=match.group('scope'),
    )


def extract_subject(message: str) -> str:
    """
    Return the subject line of a full commit message.

    The subject is the first line that is neither blank nor a ``#`` comment
    (git strips comment lines from the final message).
    """
    for line in message.splitlines():
        if line.startswith('#'):
            continue
        if line.strip():
            return line.strip()
    return ""


def validate_with_config(subject: str, config: Dict[str, Any]) -> ValidationResult:
    """Validate a subject using the ``commit`` section of a config dict."""
    commit_config = config.get('commit', {})
    types = commit_config.get('types')
    return validate_subject(
        subject,
        types=None if types is None or list(types) == COMMIT_TYPES else list(types),
        max_length=int(commit_config.get('max_subject_length', MAX_SUBJECT_LENGTH)),
        allowed_prefixes=tuple(commit_config.get('allowed_prefixes', ALLOWED_PREFIXES)),
    )
