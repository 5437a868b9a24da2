# cleaner/staleness/sweeper.py
from __future__ import annotations

import re
from datetime import datetime
from typing import Protocol

from loguru import logger

from cleaner.devops.activity import since_iso
from cleaner.staleness.models import ActivityFeed, Candidate
from config.config import CleanerConfig


class RemoteSource(Protocol):
    def list_commits_page(self, org: str, repo: str, since: str, per_page: int = 20) -> list[dict] | None: ...

    def commit_detail(self, org: str, repo: str, sha: str) -> dict | None: ...

    def read_file(self, org: str, repo: str, path: str, ref: str | None = None) -> str | None: ...


def number_lines(lines: list[str], start: int = 1) -> str:
    return "\n".join(f"{start + i}: {line}" for i, line in enumerate(lines))


def context_window(lines: list[str], index: int, radius: int = 8) -> str:
    """Numbered window of `radius` lines either side of `index` (0-based), clipped to the file."""
    lo = max(0, index - radius)
    hi = min(len(lines) - 1, index + radius)
    return number_lines(lines[lo : hi + 1], start=lo + 1)


def tag_pattern(markers: list[str], min_text: int = 10) -> re.Pattern[str]:
    alternation = "|".join(re.escape(m) for m in markers)
    return re.compile(rf"\b({alternation})\s*[:\-]?\s*(.{{{min_text},}})", re.IGNORECASE)


def source_pattern(extensions: list[str]) -> re.Pattern[str]:
    alternation = "|".join(re.escape(e.lstrip(".")) for e in extensions)
    return re.compile(rf"\.({alternation})$")


def commit_digest(feed: ActivityFeed, repo: str, limit: int = 12) -> str:
    repo_commits = [c for c in feed.commits if c.repo == repo][:limit]
    return "\n".join(f"{c.hash}: {c.message}" for c in repo_commits)


def build_doc_candidate(repo: str, file_path: str, content: str, recent_commits: str) -> Candidate:
    lines = content.split("\n")
    return Candidate(
        repo=repo,
        file_path=file_path,
        start_line=1,
        end_line=len(lines),
        original=content,
        context=number_lines(lines),
        kind="doc-file",
        recent_commits=recent_commits,
    )


def extract_tags(
    repo: str,
    file_path: str,
    content: str,
    recent_commits: str,
    pattern: re.Pattern[str] | None = None,
    radius: int = 8,
) -> list[Candidate]:
    pattern = pattern or tag_pattern(["TODO", "FIXME", "HACK", "XXX"])
    lines = content.split("\n")
    found: list[Candidate] = []

    for i, line in enumerate(lines):
        if not pattern.search(line):
            continue
        found.append(
            Candidate(
                repo=repo,
                file_path=file_path,
                start_line=i + 1,
                end_line=i + 1,
                original=line,
                context=context_window(lines, i, radius),
                kind="fixme" if re.search(r"fixme", line, re.IGNORECASE) else "todo",
                recent_commits=recent_commits,
            )
        )
    return found


class Sweeper:
    """Finds doc-file and tag candidates in repositories with recent activity."""

    def __init__(self, config: CleanerConfig, source: RemoteSource):
        self.config = config
        self.source = source
        self.tag_re = tag_pattern(config.tag_markers, config.min_tag_text)
        self.source_re = source_pattern(config.source_extensions)

    def _read(self, repo: str, path: str) -> str | None:
        try:
            return self.source.read_file(self.config.org, repo, path)
        except Exception as e:
            logger.debug(f"    skip {repo}/{path}: {e}")
            return None

    def changed_source_files(self, repo: str, since: str) -> list[str]:
        cfg = self.config
        commits = self.source.list_commits_page(cfg.org, repo, since, per_page=cfg.commits_listed)
        if not commits:
            return []

        files: dict[str, None] = {}
        for c in commits[: cfg.commits_inspected]:
            sha = c.get("sha") if isinstance(c, dict) else None
            if not sha:
                continue
            detail = self.source.commit_detail(cfg.org, repo, sha) or {}
            for f in detail.get("files") or []:
                name = f.get("filename", "")
                if f.get("status") != "removed" and self.source_re.search(name):
                    files.setdefault(name, None)
        return list(files)

    def doc_candidates(self, repo: str, recent_commits: str) -> list[Candidate]:
        out: list[Candidate] = []
        for doc_file in self.config.doc_files:
            content = self._read(repo, doc_file)
            if not content or len(content) < self.config.min_doc_chars:
                continue
            out.append(build_doc_candidate(repo, doc_file, content, recent_commits))
        return out

    def tag_candidates(self, repo: str, recent_commits: str, since: str) -> list[Candidate]:
        out: list[Candidate] = []
        changed = self.changed_source_files(repo, since)
        for file_path in changed[: self.config.max_files_per_repo]:
            content = self._read(repo, file_path)
            if not content:
                continue
            out.extend(
                extract_tags(
                    repo,
                    file_path,
                    content,
                    recent_commits,
                    pattern=self.tag_re,
                    radius=self.config.context_radius,
                )
            )
        return out

    def sweep(self, feed: ActivityFeed, now: datetime | None = None) -> list[Candidate]:
        if not feed.commits:
            logger.info("  No recent commits — nothing to sweep.")
            return []

        since = since_iso(self.config.sweep_window_hours, now)
        candidates: list[Candidate] = []

        for repo in feed.active_repos():
            logger.info(f"  Sweeping {repo}...")
            digest = commit_digest(feed, repo, self.config.digest_commits)
            try:
                candidates.extend(self.doc_candidates(repo, digest))
                candidates.extend(self.tag_candidates(repo, digest, since))
            except Exception as e:
                # a misbehaving source must not abort the rest of the sweep
                logger.warning(f"  ⚠ Sweep of {repo} failed: {e}")

        logger.info(f"  → {len(candidates)} raw candidates")
        return candidates
