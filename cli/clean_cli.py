# cli/clean_cli.py
"""
stale-cleaner entry point.

Runs after the daily logger. Finds TODO/FIXME comments in recently changed
source files and the standing doc files of every active repo, asks the oracle
which of them recent commits made stale, and opens one PR per repo.

Env vars:
  OPENAI_API_KEY          required
  GITHUB_TOKEN / GH_TOKEN required for live runs (needs write access)
  CLEANER_ORG             default: "ojfbot"
  CLEANER_REPOS           comma-separated repo list
  DATE_OVERRIDE           YYYY-MM-DD, default: today UTC
  DRY_RUN                 "true" → log proposals, no PRs
  TARGET_REPO             only sweep this repo
"""
from __future__ import annotations

import argparse
import sys

from loguru import logger

from cleaner.agents.orchestrator import Orchestrator
from config.config import ConfigError, Settings, settings


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="stale-cleaner", description="Open PRs that remove stale comments and docs.")
    p.add_argument("--date", help="run date YYYY-MM-DD (default: today UTC)")
    p.add_argument("--dry-run", action="store_true", help="log what would change; open no PRs")
    p.add_argument("--repo", help="only sweep this repository")
    p.add_argument("--org", help="GitHub owner to sweep")
    p.add_argument("--workers", type=int, help="repositories published in parallel")
    p.add_argument("--log-level", help="loguru level (DEBUG, INFO, ...)")
    return p


def resolve_settings(args: argparse.Namespace, base: Settings | None = None) -> Settings:
    base = base or settings
    update: dict = {}
    if args.date:
        update["date_override"] = args.date
    if args.dry_run:
        update["dry_run"] = True
    if args.repo:
        update["target_repo"] = args.repo
    if args.org:
        update["org"] = args.org
    if args.workers:
        update["max_workers"] = args.workers
    if args.log_level:
        update["log_level"] = args.log_level.upper()
    return base.model_copy(update=update)


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level, format="<level>{message}</level>")


def main(argv: list[str] | None = None, base: Settings | None = None) -> int:
    args = build_parser().parse_args(argv)
    s = resolve_settings(args, base)
    configure_logging(s.log_level)

    logger.info(f"stale-cleaner — {s.run_date()}")
    logger.info(f"   Mode: {'dry run' if s.dry_run else 'live'}")
    if s.target_repo:
        logger.info(f"   Target: {s.target_repo}")

    try:
        s.require_credentials(live=not s.dry_run)
    except ConfigError as e:
        logger.error(f"❌ {e}")
        return 1
    if not s.github_token:
        logger.warning("⚠  No GitHub token — sweep will fail for private repos")

    try:
        report = Orchestrator(settings=s).run()
    except Exception:
        logger.exception("❌ Fatal")
        return 1

    if report.dry_run:
        logger.info("✓ Dry run complete — no PRs opened.")
    else:
        logger.info("✓ Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
