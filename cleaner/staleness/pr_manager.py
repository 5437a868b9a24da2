# cleaner/staleness/pr_manager.py
from __future__ import annotations

import tempfile
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

from loguru import logger

from cleaner.devops.git_client import GitClient
from cleaner.devops.github_api import GitHubAPI
from cleaner.io.notifier import Notifier
from cleaner.staleness.models import Proposal, PublishOutcome
from cleaner.staleness.patcher import apply_to_tree, unified_preview

GitFactory = Callable[[str, Path], GitClient]


def group_by_repo(proposals: list[Proposal]) -> dict[str, list[Proposal]]:
    """Stable grouping: first-seen repo order, proposal order kept within a repo."""
    by_repo: dict[str, list[Proposal]] = {}
    for p in proposals:
        by_repo.setdefault(p.repo, []).append(p)
    return by_repo


def _range_label(p: Proposal) -> str:
    if p.end_line > p.start_line:
        return f"lines {p.start_line}-{p.end_line}"
    return f"line {p.start_line}"


def format_proposal(p: Proposal) -> str:
    return "\n".join(
        [
            f"### `{p.file_path}` {_range_label(p)}",
            f"**{p.action}** · _{p.rationale}_",
            "",
            "```diff",
            *unified_preview(p),
            "```",
        ]
    )


def build_pr_body(proposals: list[Proposal], date: str) -> str:
    high = [p for p in proposals if p.confidence == "high"]
    medium = [p for p in proposals if p.confidence == "medium"]

    sections: list[str] = [
        f"## Stale documentation/comments — {date}",
        "",
        "Each edit was validated by the staleness oracle against recent commits. "
        "Only high and medium confidence edits are included.",
        "",
    ]
    for heading, group in (("High confidence", high), ("Medium confidence", medium)):
        if not group:
            continue
        sections.append(f"## {heading} ({len(group)})")
        sections.append("")
        for p in group:
            sections += [format_proposal(p), ""]

    sections += ["---", "*Generated by stale-cleaner*"]
    return "\n".join(sections)


@contextmanager
def workspace(repo: str) -> Iterator[Path]:
    """Exclusive scratch directory for one repo's publish attempt; removed on every exit path."""
    with tempfile.TemporaryDirectory(prefix=f"clean-{repo}-", ignore_cleanup_errors=True) as tmp:
        logger.debug(f"  workspace for {repo}: {tmp}")
        yield Path(tmp)


class PRManager:
    """
    One branch `clean/<date>` and one PR per repository with proposals.
    An existing branch means the repo was already handled for that date.
    """

    def __init__(
        self,
        api: GitHubAPI,
        org: str,
        date: str,
        dry_run: bool = False,
        bot_name: str = "ojfbot-clean[bot]",
        bot_email: str = "41898282+github-actions[bot]@users.noreply.github.com",
        branch_prefix: str = "clean/",
        remote: str = "origin",
        git_timeout: float = 60.0,
        max_workers: int = 1,
        notifier: Notifier | None = None,
        git_factory: GitFactory | None = None,
    ):
        self.api = api
        self.org = org
        self.date = date
        self.dry_run = dry_run
        self.bot_name = bot_name
        self.bot_email = bot_email
        self.branch = f"{branch_prefix}{date}"
        self.max_workers = max(1, max_workers)
        self.notifier = notifier or Notifier(mode="log")
        self.git_factory = git_factory or (
            lambda url, dest: GitClient.clone(url, dest, remote=remote, timeout=git_timeout)
        )

    @property
    def commit_message(self) -> str:
        return f"clean: remove stale comments/docs {self.date} [skip ci]"

    @property
    def pr_title(self) -> str:
        return f"clean: stale docs/comments {self.date}"

    def preview(self, repo: str, proposals: list[Proposal]) -> PublishOutcome:
        logger.info(f"  [dry] Would open PR on {self.org}/{repo} branch {self.branch}:")
        for p in proposals:
            action = "delete" if p.is_deletion else "update"
            logger.info(f"    {action} {p.file_path}:{p.start_line} [{p.confidence}] — {p.rationale}")
        return PublishOutcome(repo=repo, status="dry-run")

    def _already_handled(self, repo: str) -> bool:
        if not self.api.branch_exists(self.org, repo, self.branch):
            return False
        open_prs = self.api.open_pull_requests(self.org, repo, self.branch)
        if open_prs is None:
            logger.warning(f"  Branch {self.branch} exists in {repo}; PR lookup failed — skipping")
        elif open_prs:
            logger.info(f"  Branch {self.branch} already exists in {repo} — skipping")
        else:
            # pushed on an earlier run but the PR never opened
            msg = f"branch {self.branch} exists in {self.org}/{repo} with no open PR; open it manually"
            logger.warning(f"  ⚠ {msg}")
            self.notifier.notify("Orphaned clean branch", msg)
        return True

    def publish(self, repo: str, proposals: list[Proposal]) -> PublishOutcome:
        if not proposals:
            return PublishOutcome(repo=repo, status="skipped")

        logger.info(f"  {repo}: {len(proposals)} proposal(s)")
        if self.dry_run:
            return self.preview(repo, proposals)

        pushed = False
        try:
            if self._already_handled(repo):
                return PublishOutcome(repo=repo, status="skipped")

            with workspace(repo) as tmp:
                git = self.git_factory(self.api.clone_url(self.org, repo), tmp / repo)
                base = git.current_branch()

                touched = apply_to_tree(git.root, proposals)
                if not touched:
                    logger.info(f"  {repo}: edits produced no change — skipping")
                    return PublishOutcome(repo=repo, status="skipped")

                git.ensure_user(self.bot_name, self.bot_email)
                git.checkout(self.branch, create=True)
                git.add_all(touched)
                git.commit(self.commit_message)
                git.push(self.branch)
                pushed = True

                url = self.api.create_pull_request(
                    self.org,
                    repo,
                    title=self.pr_title,
                    body=build_pr_body(proposals, self.date),
                    head=self.branch,
                    base=base,
                )
            logger.info(f"  ✓ PR opened: {url}")
            return PublishOutcome(repo=repo, status="opened", pr_url=url)
        except Exception as e:
            logger.warning(f"  ⚠ Failed to open PR for {repo}: {e}")
            if pushed:
                self.notifier.notify(
                    "PR creation failed after push",
                    f"{self.org}/{repo} branch {self.branch} was pushed but no PR was opened: {e}",
                )
            return PublishOutcome(repo=repo, status="failed", error=str(e))

    def publish_all(self, proposals: list[Proposal]) -> list[PublishOutcome]:
        by_repo = group_by_repo(proposals)
        if not by_repo:
            logger.info("  No validated proposals — nothing to PR.")
            return []

        if self.max_workers == 1 or len(by_repo) == 1:
            return [self.publish(repo, ps) for repo, ps in by_repo.items()]

        results: dict[str, PublishOutcome] = {}
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(by_repo))) as pool:
            futures = {pool.submit(self.publish, repo, ps): repo for repo, ps in by_repo.items()}
            for fut in as_completed(futures):
                results[futures[fut]] = fut.result()
        return [results[repo] for repo in by_repo]
