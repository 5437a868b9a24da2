# tests/test_orchestrator.py
from __future__ import annotations

import json

from cleaner.agents.orchestrator import Orchestrator
from cleaner.io.notifier import Notifier
from cleaner.staleness.pr_manager import PRManager
from config.config import Settings

DATE = "2026-03-01"
FOO_LINES = [f"const v{i} = {i}" for i in range(1, 12)] + [
    "// TODO: remove fallback once migrated",
    "const fallback = null",
    "export default v1",
    "",
]
FOO = "\n".join(FOO_LINES)


class ScenarioAPI:
    """GitHub stub covering activity, sweep reads and publishing."""

    def __init__(self, source, host):
        self.source = source
        self.host = host
        self.raw_commits: dict[str, list[dict]] = {}

    def list_commits(self, org, repo, since, per_page=100):
        return self.raw_commits.get(repo, [])

    def list_commits_page(self, org, repo, since, per_page=20):
        return self.source.list_commits_page(org, repo, since, per_page)

    def commit_detail(self, org, repo, sha):
        return self.source.commit_detail(org, repo, sha)

    def read_file(self, org, repo, path, ref=None):
        return self.source.read_file(org, repo, path, ref)

    def __getattr__(self, name):
        return getattr(self.host, name)


def _settings(**kw) -> Settings:
    base = dict(
        openai_api_key="sk-test",
        github_token="ghp-test",
        org="acme",
        repos=["svc", "web"],
        date_override=DATE,
        dry_run=False,
        target_repo=None,
        max_workers=1,
    )
    base.update(kw)
    return Settings(**base)


def _raw_commit(sha, message, date="2026-03-01T09:00:00Z"):
    return {
        "sha": sha,
        "commit": {"message": message, "author": {"name": "dev", "date": date}},
        "html_url": f"https://github.com/acme/svc/commit/{sha}",
    }


def _wire(source, host, oracle, **kw):
    api = ScenarioAPI(source, host)
    s = _settings(**kw)
    manager = PRManager(
        api,
        org="acme",
        date=DATE,
        dry_run=s.dry_run,
        git_factory=host.git_factory,
        notifier=Notifier(mode="log"),
    )
    return api, Orchestrator(settings=s, api=api, oracle=oracle, pr_manager=manager)


def test_resolved_todo_is_deleted_end_to_end(source, host, oracle):
    source.add_commit("svc", "abc1234def", [("src/foo.ts", "modified")])
    source.files[("svc", "src/foo.ts")] = FOO
    host.repo_files["svc"] = {"src/foo.ts": FOO}
    oracle.when(
        "src/foo.ts:12",
        json.dumps({"resolved": True, "evidence": "abc1234 removed the fallback", "replacement": "", "confidence": "high"}),
    )

    api, orch = _wire(source, host, oracle)
    api.raw_commits["svc"] = [_raw_commit("abc1234def", "remove fallback\n\nCo-Authored-By: bot <b@x>")]

    report = orch.run()

    assert [(c.file_path, c.start_line, c.kind) for c in report.candidates] == [("src/foo.ts", 12, "todo")]
    [proposal] = report.proposals
    assert (proposal.start_line, proposal.end_line, proposal.confidence) == (12, 12, "high")
    assert proposal.is_deletion
    assert "abc1234: remove fallback" in oracle.calls[0][1]

    expected = FOO_LINES[:11] + FOO_LINES[12:]
    assert host.committed["svc"]["src/foo.ts"].split("\n") == expected
    assert [o.status for o in report.outcomes] == ["opened"]


def test_no_commits_means_no_sweep(source, host, oracle):
    _, orch = _wire(source, host, oracle)
    report = orch.run()
    assert report.candidates == [] and report.outcomes == []
    assert source.reads == [] and oracle.calls == []


def test_target_repo_narrows_the_run(source, host, oracle):
    source.files[("svc", "README.md")] = "x" * 80
    source.files[("web", "README.md")] = "y" * 80
    api, orch = _wire(source, host, oracle, target_repo="web")
    api.raw_commits["svc"] = [_raw_commit("1111111aaa", "svc change")]
    api.raw_commits["web"] = [_raw_commit("2222222bbb", "web change")]

    report = orch.run()

    assert {c.repo for c in report.candidates} == {"web"}


def test_dry_run_validates_but_publishes_nothing(source, host, oracle):
    source.files[("svc", "README.md")] = "Install with `npm i old-pkg` then run the server.\nMore.\n"
    host.repo_files["svc"] = {"README.md": source.files[("svc", "README.md")]}
    oracle.when(
        "README.md",
        json.dumps([{"startLine": 1, "endLine": 1, "original": "x", "replacement": "Install with `npm i new-pkg`.", "rationale": "renamed", "confidence": "medium"}]),
    )
    api, orch = _wire(source, host, oracle, dry_run=True)
    api.raw_commits["svc"] = [_raw_commit("3333333ccc", "rename package")]

    report = orch.run()

    assert len(report.proposals) == 1
    assert [o.status for o in report.outcomes] == ["dry-run"]
    assert host.clones == [] and host.prs == []


def test_orchestrator_takes_run_values_from_settings(source, host, oracle):
    _, orch = _wire(source, host, oracle)
    assert orch.date == DATE
    assert orch.config.org == "acme"
    assert orch.config.repos == ["svc", "web"]


def test_default_pr_manager_follows_settings(source, host, oracle):
    s = _settings(max_workers=4, dry_run=True, branch_prefix="tidy/")
    orch = Orchestrator(settings=s, api=ScenarioAPI(source, host), oracle=oracle)
    assert orch.pr_manager.branch == f"tidy/{DATE}"
    assert orch.pr_manager.max_workers == 4
    assert orch.pr_manager.dry_run is True


def test_default_oracle_uses_run_settings(source, host):
    s = _settings(openai_api_key="sk-run", openai_model="gpt-test", oracle_timeout_sec=9)
    orch = Orchestrator(settings=s, api=ScenarioAPI(source, host))
    assert orch.oracle.client.api_key == "sk-run"
    assert orch.oracle.model == "gpt-test"
    assert orch.oracle.timeout == 9
