# cleaner/devops/activity.py
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

from loguru import logger

from cleaner.devops.github_api import GitHubAPI
from cleaner.staleness.models import ActivityFeed, CommitInfo
from config.config import CleanerConfig

_COAUTHOR_RE = re.compile(r"\s*Co-Authored-By:.*", re.IGNORECASE)


def since_iso(hours: int, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return (now - timedelta(hours=hours)).strftime("%Y-%m-%dT%H:%M:%SZ")


def _to_commit(raw: dict, repo: str) -> CommitInfo | None:
    try:
        commit = raw["commit"]
        message = commit["message"].split("\n")[0]
        return CommitInfo(
            hash=raw["sha"][:7],
            message=_COAUTHOR_RE.sub("", message).strip(),
            repo=repo,
            author=(commit.get("author") or {}).get("name", ""),
            date=(commit.get("author") or {}).get("date", ""),
            url=raw.get("html_url", ""),
        )
    except (KeyError, TypeError, AttributeError):
        logger.debug(f"Malformed commit entry in {repo}; skipped")
        return None


def collect_activity(
    date: str,
    config: CleanerConfig,
    api: GitHubAPI,
    now: datetime | None = None,
) -> ActivityFeed:
    """Recent commits for every configured repo, deduplicated by url, newest first."""
    since = since_iso(config.commit_lookback_hours, now)
    commits: list[CommitInfo] = []

    for repo in config.repos:
        logger.info(f"  {repo}...")
        raw = api.list_commits(config.org, repo, since) or []
        for entry in raw:
            c = _to_commit(entry, repo)
            if c is not None:
                commits.append(c)

    # keyed by url, falling back to repo+hash when the API omits html_url
    dedup = {(c.url or f"{c.repo}@{c.hash}"): c for c in commits}
    ordered = sorted(dedup.values(), key=lambda c: c.date, reverse=True)

    logger.info(f"  → {len(ordered)} commits across {len(config.repos)} repos")
    return ActivityFeed(date=date, repos=list(config.repos), commits=ordered)


def read_daily_article(api: GitHubAPI, org: str, logger_repo: str, date: str) -> str | None:
    """
    The day's published summary article, if the logger produced one.
    Tries the draft branch `article/<date>` first, then the default branch.
    """
    path = f"articles/{date}.md"
    return api.read_file(org, logger_repo, path, ref=f"article/{date}") or api.read_file(
        org, logger_repo, path
    )
