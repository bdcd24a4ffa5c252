"""
Per-post results and the end-of-run summary.

Each post handled by the importer produces exactly one :class:`PostResult`.
Results are folded into a :class:`RunStatistics` with :meth:`RunStatistics.record`
and printed at the end of the run by :func:`print_summary`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple


class Outcome(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class PostResult:
    outcome: Outcome
    slug: str
    post_id: Optional[str] = None
    reason: Optional[str] = None
    image_failures: int = 0

    @classmethod
    def created(cls, slug: str, post_id: Optional[str], image_failures: int = 0) -> "PostResult":
        return cls(Outcome.CREATED, slug, post_id=post_id, image_failures=image_failures)

    @classmethod
    def updated(cls, slug: str, post_id: Optional[str]) -> "PostResult":
        return cls(Outcome.UPDATED, slug, post_id=post_id)

    @classmethod
    def skipped(cls, slug: str, reason: str) -> "PostResult":
        return cls(Outcome.SKIPPED, slug, reason=reason)

    @classmethod
    def failed(cls, slug: str, reason: str, image_failures: int = 0) -> "PostResult":
        return cls(Outcome.FAILED, slug, reason=reason, image_failures=image_failures)


@dataclass
class RunStatistics:
    total: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    image_failures: int = 0
    errors: List[Tuple[str, str]] = field(default_factory=list)
    results: List[PostResult] = field(default_factory=list)

    def record(self, result: PostResult) -> PostResult:
        self.total += 1
        self.image_failures += result.image_failures
        if result.outcome is Outcome.CREATED:
            self.created += 1
        elif result.outcome is Outcome.UPDATED:
            self.updated += 1
        elif result.outcome is Outcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
            self.errors.append((result.slug, result.reason or "unknown error"))
        self.results.append(result)
        return result


def format_summary(stats: RunStatistics, *, dry_run: bool = False, title: str = "MIGRATION SUMMARY") -> str:
    rule = "=" * 60
    lines = [
        rule,
        title,
        rule,
        f"{'Total posts:':<22}{stats.total}",
        f"{'Created:':<22}{stats.created}",
        f"{'Updated:':<22}{stats.updated}",
        f"{'Skipped:':<22}{stats.skipped}",
        f"{'Failed:':<22}{stats.failed}",
        f"{'Image failures:':<22}{stats.image_failures}",
    ]
    if stats.errors:
        lines.append("")
        lines.append("FAILED POSTS:")
        for slug, error in stats.errors:
            lines.append(f"  - {slug}: {error}")
    if dry_run:
        lines.append("")
        lines.append("This was a dry run. Run without --dry-run to apply changes.")
    return "\n".join(lines)


def print_summary(
    stats: RunStatistics,
    *,
    dry_run: bool = False,
    title: str = "MIGRATION SUMMARY",
    out: Callable[[str], None] = print,
) -> None:
    out(format_summary(stats, dry_run=dry_run, title=title))
