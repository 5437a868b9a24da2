# tests/conftest.py
from __future__ import annotations

from pathlib import Path

import pytest

from cleaner.devops.git_client import GitError
from cleaner.devops.github_api import GitHubAPIError
from cleaner.staleness.models import ActivityFeed, CommitInfo, Proposal
from config.config import CleanerConfig


class FakeSource:
    """Remote reads for the sweeper: commit lists, commit details, file contents."""

    def __init__(self):
        self.files: dict[tuple[str, str], str] = {}
        self.commits: dict[str, list[dict]] = {}
        self.details: dict[str, dict] = {}
        self.broken: set[tuple[str, str]] = set()
        self.reads: list[tuple[str, str]] = []

    def add_commit(self, repo: str, sha: str, files: list[tuple[str, str]]) -> None:
        self.commits.setdefault(repo, []).append({"sha": sha})
        self.details[sha] = {"files": [{"filename": f, "status": s} for f, s in files]}

    def list_commits_page(self, org, repo, since, per_page=20):
        return self.commits.get(repo, [])[:per_page]

    def commit_detail(self, org, repo, sha):
        return self.details.get(sha)

    def read_file(self, org, repo, path, ref=None):
        self.reads.append((repo, path))
        if (repo, path) in self.broken:
            raise RuntimeError("connection reset")
        return self.files.get((repo, path))


class FakeOracle:
    """Replies chosen by the first rule whose needle appears in the prompt."""

    def __init__(self):
        self.rules: list[tuple[str, object]] = []
        self.calls: list[tuple[str | None, str]] = []

    def when(self, needle: str, reply) -> FakeOracle:
        self.rules.append((needle, reply))
        return self

    def ask_brain(self, prompt, system_prompt=None, max_tokens=1024):
        self.calls.append((system_prompt, prompt))
        for needle, reply in self.rules:
            if needle in prompt:
                if isinstance(reply, Exception):
                    raise reply
                return reply
        return ""


class FakeGit:
    def __init__(self, root: Path, repo: str, host: FakeHost):
        self.root = root
        self.repo = repo
        self.host = host
        self.branch = "main"

    def current_branch(self):
        return self.branch

    def ensure_user(self, name, email):
        self.host.calls.append(("ensure_user", self.repo))

    def checkout(self, branch, create=False):
        self.host.calls.append(("checkout", self.repo, branch))
        self.branch = branch

    def add_all(self, paths=None):
        self.host.calls.append(("add", self.repo, tuple(paths or ())))

    def commit(self, message):
        self.host.calls.append(("commit", self.repo, message))
        self.host.committed[self.repo] = {
            str(p.relative_to(self.root)): p.read_text(encoding="utf-8")
            for p in self.root.rglob("*")
            if p.is_file()
        }

    def push(self, branch):
        self.host.calls.append(("push", self.repo, branch))
        if self.repo in self.host.fail_push:
            raise GitError("remote rejected")
        self.host.branches.add((self.repo, branch))


class FakeHost:
    """Git hosting stub: records branch lookups, clones, pushes and PRs."""

    def __init__(self):
        self.repo_files: dict[str, dict[str, str]] = {}
        self.branches: set[tuple[str, str]] = set()
        self.prs: list[dict] = []
        self.fail_push: set[str] = set()
        self.fail_pr: set[str] = set()
        self.fail_pr_lookup: set[str] = set()
        self.clones: list[Path] = []
        self.committed: dict[str, dict[str, str]] = {}
        self.calls: list[tuple] = []

    def branch_exists(self, org, repo, branch):
        self.calls.append(("branch_exists", repo, branch))
        return (repo, branch) in self.branches

    def open_pull_requests(self, org, repo, head_branch):
        if repo in self.fail_pr_lookup:
            return None
        return [p for p in self.prs if p["repo"] == repo and p["head"] == head_branch]

    def create_pull_request(self, org, repo, title, body, head, base):
        self.calls.append(("create_pr", repo, head))
        if repo in self.fail_pr:
            raise GitHubAPIError("422 Validation Failed")
        self.prs.append({"repo": repo, "title": title, "body": body, "head": head, "base": base})
        return f"https://github.com/{org}/{repo}/pull/{len(self.prs)}"

    def clone_url(self, org, repo):
        return f"https://example.invalid/{org}/{repo}.git"

    def git_factory(self, url: str, dest: Path) -> FakeGit:
        repo = url.rsplit("/", 1)[-1].removesuffix(".git")
        dest.mkdir(parents=True)
        for rel, content in self.repo_files.get(repo, {}).items():
            target = dest / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        self.clones.append(dest)
        return FakeGit(dest, repo, self)


@pytest.fixture()
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture()
def oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture()
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture()
def config() -> CleanerConfig:
    return CleanerConfig(org="acme", repos=["svc", "web"])


@pytest.fixture()
def make_feed():
    def _make(*commits: tuple[str, str, str], date: str = "2026-03-01") -> ActivityFeed:
        return ActivityFeed(
            date=date,
            repos=sorted({repo for repo, _, _ in commits}),
            commits=[CommitInfo(hash=h, message=m, repo=repo) for repo, h, m in commits],
        )

    return _make


@pytest.fixture()
def make_proposal():
    def _make(
        start: int,
        end: int | None = None,
        replacement: str = "",
        confidence: str = "high",
        repo: str = "svc",
        file_path: str = "README.md",
        original: str = "old",
        rationale: str = "shipped in abc1234",
    ) -> Proposal:
        return Proposal(
            repo=repo,
            file_path=file_path,
            start_line=start,
            end_line=end if end is not None else start,
            original=original,
            replacement=replacement,
            rationale=rationale,
            confidence=confidence,
        )

    return _make
