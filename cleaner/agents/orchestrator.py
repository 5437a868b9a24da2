# cleaner/agents/orchestrator.py
from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from cleaner.devops.activity import collect_activity, read_daily_article
from cleaner.devops.github_api import GitHubAPI
from cleaner.io.notifier import Notifier
from cleaner.llm.brain import Brain
from cleaner.staleness.models import Candidate, Proposal, PublishOutcome
from cleaner.staleness.pr_manager import PRManager
from cleaner.staleness.sweeper import Sweeper
from cleaner.staleness.validator import Oracle, Validator
from config.config import Settings, settings as default_settings

ARTICLE_MAX_CHARS = 6000


@dataclass
class RunReport:
    date: str
    dry_run: bool
    candidates: list[Candidate] = field(default_factory=list)
    proposals: list[Proposal] = field(default_factory=list)
    outcomes: list[PublishOutcome] = field(default_factory=list)


class Orchestrator:
    """Collect → sweep → validate → publish for one run date."""

    def __init__(
        self,
        settings: Settings | None = None,
        api: GitHubAPI | None = None,
        oracle: Oracle | None = None,
        notifier: Notifier | None = None,
        pr_manager: PRManager | None = None,
    ):
        self.settings = settings or default_settings
        s = self.settings
        self.config = s.cleaner_config()
        self.date = s.run_date()
        self.api = api or GitHubAPI(
            s.github_token,
            api_url=s.github_api_url,
            clone_host=s.github_clone_host,
            timeout=s.http_timeout_sec,
        )
        self.oracle = oracle or Brain(
            model=s.openai_model, timeout=s.oracle_timeout_sec, api_key=s.openai_api_key
        )
        self.notifier = notifier or Notifier(mode=s.notify_mode)
        self.pr_manager = pr_manager or PRManager(
            self.api,
            org=self.config.org,
            date=self.date,
            dry_run=s.dry_run,
            bot_name=s.github_bot_name,
            bot_email=s.github_bot_email,
            branch_prefix=s.branch_prefix,
            remote=s.github_remote_name,
            git_timeout=s.git_timeout_sec,
            max_workers=s.max_workers,
            notifier=self.notifier,
        )

    def run(self) -> RunReport:
        s = self.settings
        report = RunReport(date=self.date, dry_run=s.dry_run)

        logger.info("1/3  Collecting GitHub activity context...")
        feed = collect_activity(self.date, self.config, self.api)
        if s.target_repo:
            feed = feed.narrowed_to(s.target_repo)

        if not feed.commits:
            logger.info("     No recent commits found — nothing to sweep.")
            return report

        article = read_daily_article(self.api, self.config.org, s.logger_repo, self.date)
        if article:
            logger.info(f"     Today's article: loaded ({len(article)} chars)")
            article = article[:ARTICLE_MAX_CHARS]
        else:
            logger.info("     Today's article: not found — validation will rely on commits only")

        logger.info("2/3  Sweeping for candidates...")
        report.candidates = Sweeper(self.config, self.api).sweep(feed)
        if not report.candidates:
            logger.info("     No candidates found.")
            return report

        logger.info(f"3/3  Validating {len(report.candidates)} candidate(s)...")
        validator = Validator(
            self.oracle,
            org=self.config.org,
            article=article,
            doc_max_tokens=s.oracle_doc_max_tokens,
            tag_max_tokens=s.oracle_tag_max_tokens,
        )
        report.proposals = validator.validate(report.candidates)
        if not report.proposals:
            logger.info("     No stale items confirmed — no PRs needed.")
            return report

        report.outcomes = self.pr_manager.publish_all(report.proposals)
        opened = sum(1 for o in report.outcomes if o.status == "opened")
        failed = sum(1 for o in report.outcomes if o.status == "failed")
        logger.info(f"     {opened} PR(s) opened, {failed} repo(s) failed")
        return report
