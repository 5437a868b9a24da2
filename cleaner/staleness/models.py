# cleaner/staleness/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

CandidateKind = Literal["todo", "fixme", "doc-file", "inline-comment"]
Confidence = Literal["high", "medium"]

ACCEPTED_CONFIDENCE: tuple[str, ...] = ("high", "medium")


@dataclass
class CommitInfo:
    hash: str
    message: str
    repo: str
    author: str = ""
    date: str = ""
    url: str = ""


@dataclass
class ActivityFeed:
    date: str
    repos: list[str] = field(default_factory=list)
    commits: list[CommitInfo] = field(default_factory=list)

    def active_repos(self) -> list[str]:
        """Repos with at least one commit, in first-seen order."""
        seen: dict[str, None] = {}
        for c in self.commits:
            seen.setdefault(c.repo, None)
        return list(seen)

    def narrowed_to(self, repo: str) -> ActivityFeed:
        return ActivityFeed(
            date=self.date,
            repos=[r for r in self.repos if r == repo] or [repo],
            commits=[c for c in self.commits if c.repo == repo],
        )


@dataclass
class Candidate:
    repo: str
    file_path: str
    start_line: int
    end_line: int
    original: str
    context: str
    kind: CandidateKind
    recent_commits: str = ""

    def __post_init__(self) -> None:
        if self.start_line < 1 or self.end_line < self.start_line:
            raise ValueError(
                f"invalid candidate range {self.start_line}-{self.end_line} for {self.file_path}"
            )

    @property
    def label(self) -> str:
        if self.kind == "doc-file":
            return f"{self.repo}/{self.file_path}"
        return f"{self.repo}/{self.file_path}:{self.start_line}"


@dataclass
class Proposal:
    repo: str
    file_path: str
    start_line: int
    end_line: int
    original: str
    replacement: str
    rationale: str
    confidence: Confidence

    def __post_init__(self) -> None:
        if self.confidence not in ACCEPTED_CONFIDENCE:
            raise ValueError(f"confidence {self.confidence!r} is not actionable")
        if self.start_line < 1 or self.end_line < self.start_line:
            raise ValueError(
                f"invalid proposal range {self.start_line}-{self.end_line} for {self.file_path}"
            )

    @property
    def is_deletion(self) -> bool:
        return self.replacement == ""

    @property
    def action(self) -> str:
        return "Removed" if self.is_deletion else "Updated"

    def overlaps(self, other: Proposal) -> bool:
        if (self.repo, self.file_path) != (other.repo, other.file_path):
            return False
        return self.start_line <= other.end_line and other.start_line <= self.end_line


PublishStatus = Literal["opened", "skipped", "failed", "dry-run"]


@dataclass
class PublishOutcome:
    repo: str
    status: PublishStatus
    pr_url: str | None = None
    error: str | None = None
