from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field


class ConfigError(RuntimeError):
    """Raised when a required credential or setting is missing."""


def _read_secret(path_env: str) -> str | None:
    path = os.getenv(path_env)
    if path and Path(path).exists():
        return Path(path).read_text(encoding="utf-8").strip()
    return None


env_override = os.getenv("CLEANER_ENV_PATH")
if env_override and os.path.exists(env_override):
    load_dotenv(env_override, override=True)
else:
    # nearest .env from the working directory, if any
    found = find_dotenv(filename=".env", usecwd=True)
    if found:
        load_dotenv(found, override=False)


def _csv(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [part.strip() for part in raw.split(",") if part.strip()]


def today_utc() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


class CleanerConfig(BaseModel):
    """Sweep constants. Passed explicitly to the sweeper and activity collector."""

    org: str = "ojfbot"
    repos: list[str] = Field(default_factory=list)
    doc_files: list[str] = Field(default_factory=lambda: ["CLAUDE.md", "README.md", "ROADMAP.md"])
    tag_markers: list[str] = Field(default_factory=lambda: ["TODO", "FIXME", "HACK", "XXX"])
    source_extensions: list[str] = Field(
        default_factory=lambda: ["ts", "tsx", "js", "jsx", "py", "yml", "yaml"]
    )

    min_doc_chars: int = 50
    min_tag_text: int = 10
    context_radius: int = 8

    commit_lookback_hours: int = 24
    sweep_window_hours: int = 48
    commits_listed: int = 20
    commits_inspected: int = 8
    max_files_per_repo: int = 15
    digest_commits: int = 12


class Settings(BaseModel):
    # --- Oracle (OpenAI) ---
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_model: str = os.getenv("CLEANER_MODEL", "gpt-4o")
    oracle_timeout_sec: float = float(os.getenv("CLEANER_ORACLE_TIMEOUT", "120"))
    oracle_doc_max_tokens: int = int(os.getenv("CLEANER_DOC_MAX_TOKENS", "2048"))
    oracle_tag_max_tokens: int = int(os.getenv("CLEANER_TAG_MAX_TOKENS", "512"))

    # --- GitHub / PR settings ---
    github_token: str | None = (
        os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN") or _read_secret("GITHUB_TOKEN_FILE")
    )
    github_api_url: str = os.getenv("GITHUB_API_URL", "https://api.github.com")
    github_clone_host: str = os.getenv("GITHUB_CLONE_HOST", "github.com")
    github_bot_name: str = os.getenv("GITHUB_BOT_NAME", "ojfbot-clean[bot]")
    github_bot_email: str = os.getenv(
        "GITHUB_BOT_EMAIL", "41898282+github-actions[bot]@users.noreply.github.com"
    )
    github_remote_name: str = os.getenv("GITHUB_REMOTE_NAME", "origin")
    http_timeout_sec: float = float(os.getenv("CLEANER_HTTP_TIMEOUT", "30"))
    git_timeout_sec: float = float(os.getenv("CLEANER_GIT_TIMEOUT", "60"))

    # --- Run ---
    org: str = os.getenv("CLEANER_ORG", "ojfbot")
    repos: list[str] = _csv(
        "CLEANER_REPOS", "cv-builder,BlogEngine,TripPlanner,node-template,MrPlug,purefoy"
    )
    logger_repo: str = os.getenv("CLEANER_LOGGER_REPO", "daily-logger")
    date_override: str | None = os.getenv("DATE_OVERRIDE")
    dry_run: bool = os.getenv("DRY_RUN", "false").strip().lower() == "true"
    target_repo: str | None = os.getenv("TARGET_REPO") or None
    branch_prefix: str = os.getenv("CLEANER_BRANCH_PREFIX", "clean/")
    max_workers: int = int(os.getenv("CLEANER_MAX_WORKERS", "1"))
    log_level: str = os.getenv("CLEANER_LOG_LEVEL", "INFO")
    notify_mode: str = os.getenv("CLEANER_NOTIFY_MODE", "console")

    def run_date(self) -> str:
        if self.date_override and self.date_override.strip():
            return self.date_override.strip()[:10]
        return today_utc()

    def cleaner_config(self) -> CleanerConfig:
        return CleanerConfig(org=self.org, repos=list(self.repos))

    def require_credentials(self, live: bool = True) -> None:
        """Abort before any work when a credential the run needs is missing."""
        if not self.openai_api_key:
            raise ConfigError("OPENAI_API_KEY is not set")
        if live and not self.github_token:
            raise ConfigError("GITHUB_TOKEN / GH_TOKEN is not set (needs write access to open PRs)")


settings = Settings()
