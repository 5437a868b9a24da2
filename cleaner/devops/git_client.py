# cleaner/devops/git_client.py
from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Sequence, Union

from loguru import logger


class GitError(RuntimeError):
    pass


class GitClient:
    """
    Small wrapper around git via subprocess to avoid a GitPython dependency.
    Every call is bounded by `timeout`; a timeout surfaces as GitError.
    """

    def __init__(self, repo_root: Union[str, Path], remote: str = "origin", timeout: float = 60.0):
        self.root = Path(repo_root).resolve()
        self.remote = remote
        self.timeout = timeout

    @classmethod
    def clone(
        cls,
        url: str,
        dest: Union[str, Path],
        remote: str = "origin",
        timeout: float = 60.0,
    ) -> GitClient:
        """Clone `url` into `dest` (which may already exist but must be empty)."""
        dest = Path(dest)
        cmd = ["git", "clone", "--quiet", "--origin", remote, url, str(dest)]
        logger.debug(f"[git] clone into {dest}")
        cls._exec(cmd, cwd=dest.parent, timeout=timeout, redact=url)
        return cls(dest, remote=remote, timeout=timeout)

    @staticmethod
    def _exec(cmd: list[str], cwd: Path, timeout: float, check: bool = True, redact: str | None = None) -> str:
        try:
            res = subprocess.run(
                cmd,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            raise GitError(f"git {cmd[1]} timed out after {timeout:.0f}s")
        except FileNotFoundError as e:
            raise GitError(f"git executable not found: {e}")

        out = res.stdout.strip()
        if check and res.returncode != 0:
            err = (res.stderr.strip() or out or "Unknown git error")
            if redact:
                err = err.replace(redact, "<remote>")
            raise GitError(err)
        return out

    def _run(self, args: Sequence[str] | str, check: bool = True) -> str:
        if isinstance(args, str):
            args = args.split()
        args = [str(a) for a in args]

        # Strip accidental leading "git" because we prepend it below
        if args and args[0].lower() == "git":
            args = args[1:]

        cmd = ["git"] + list(args)
        logger.debug(f"[git] {' '.join(cmd)}")
        return self._exec(cmd, cwd=self.root, timeout=self.timeout, check=check)

    def ensure_user(self, name: str, email: str) -> None:
        """Set a repo-local commit identity; never touches the global config."""
        self._run(["config", "--local", "user.name", name])
        self._run(["config", "--local", "user.email", email])
        logger.debug(f"Configured repo git user: {name} <{email}>")

    def current_branch(self) -> str:
        return self._run(["rev-parse", "--abbrev-ref", "HEAD"])

    def checkout(self, branch: str, create: bool = False) -> None:
        if create:
            self._run(["checkout", "-b", branch])
        else:
            self._run(["checkout", branch])

    def add_all(self, paths: list[str] | None = None) -> None:
        if not paths:
            self._run(["add", "-A"])
        else:
            self._run(["add", "--", *paths])

    def commit(self, message: str) -> None:
        try:
            self._run(["commit", "-m", message])
        except GitError as e:
            if "nothing to commit" in str(e):
                raise GitError("Nothing to commit")
            raise

    def push(self, branch: str, set_upstream: bool = True) -> None:
        if set_upstream:
            self._run(["push", "-u", self.remote, branch])
        else:
            self._run(["push", self.remote, branch])
