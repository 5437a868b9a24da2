# cleaner/devops/github_api.py
from __future__ import annotations

import base64
from typing import Any
from urllib.parse import quote

import requests
from loguru import logger


class GitHubAPIError(RuntimeError):
    pass


class GitHubAPI:
    """
    Thin GitHub REST client. Read helpers return None on any failure so a
    sweep can skip what it cannot fetch; write helpers raise GitHubAPIError.
    """

    def __init__(
        self,
        token: str | None,
        api_url: str = "https://api.github.com",
        clone_host: str = "github.com",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.clone_host = clone_host
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def headers(self) -> dict[str, str]:
        h = {"Accept": "application/vnd.github+json"}
        if self.token:
            h["Authorization"] = f"token {self.token}"
        return h

    def _url(self, endpoint: str) -> str:
        return f"{self.api_url}/{endpoint.lstrip('/')}"

    def _request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        return self.session.request(
            method, self._url(endpoint), headers=self.headers, timeout=self.timeout, **kwargs
        )

    def get_json(self, endpoint: str, params: dict | None = None) -> Any | None:
        try:
            resp = self._request("GET", endpoint, params=params)
        except requests.RequestException as e:
            logger.warning(f"GET {endpoint} failed: {e}")
            return None
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            logger.warning(f"GET {endpoint} -> {resp.status_code}; skipped")
            return None
        try:
            return resp.json()
        except ValueError:
            logger.warning(f"GET {endpoint} returned non-JSON; skipped")
            return None

    def get_all(self, endpoint: str, params: dict | None = None, max_pages: int = 10) -> list | None:
        """Follow Link: rel="next" pagination for list endpoints."""
        try:
            resp = self._request("GET", endpoint, params=params)
            items: list = []
            for _ in range(max_pages):
                if resp.status_code != 200:
                    logger.warning(f"GET {endpoint} -> {resp.status_code}; skipped")
                    return None
                page = resp.json()
                if not isinstance(page, list):
                    return None
                items.extend(page)
                nxt = resp.links.get("next", {}).get("url")
                if not nxt:
                    break
                resp = self.session.get(nxt, headers=self.headers, timeout=self.timeout)
            return items
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"GET {endpoint} failed: {e}")
            return None

    # ---------- reads ----------

    def list_commits(self, org: str, repo: str, since: str, per_page: int = 100) -> list[dict] | None:
        return self.get_all(
            f"repos/{org}/{repo}/commits", params={"since": since, "per_page": per_page}
        )

    def list_commits_page(self, org: str, repo: str, since: str, per_page: int = 20) -> list[dict] | None:
        data = self.get_json(
            f"repos/{org}/{repo}/commits", params={"since": since, "per_page": per_page}
        )
        return data if isinstance(data, list) else None

    def commit_detail(self, org: str, repo: str, sha: str) -> dict | None:
        data = self.get_json(f"repos/{org}/{repo}/commits/{sha}")
        return data if isinstance(data, dict) else None

    def read_file(self, org: str, repo: str, path: str, ref: str | None = None) -> str | None:
        """File content at the default branch head (or `ref`); None when absent or undecodable."""
        params = {"ref": ref} if ref else None
        data = self.get_json(f"repos/{org}/{repo}/contents/{quote(path)}", params=params)
        if not isinstance(data, dict) or data.get("encoding") != "base64":
            return None
        try:
            raw = base64.b64decode(str(data.get("content", "")).replace("\n", ""))
            return raw.decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            logger.debug(f"Could not decode {org}/{repo}/{path}")
            return None

    # ---------- branches / PRs ----------

    def branch_exists(self, org: str, repo: str, branch: str) -> bool:
        try:
            resp = self._request("GET", f"repos/{org}/{repo}/git/ref/heads/{branch}")
        except requests.RequestException as e:
            raise GitHubAPIError(f"branch lookup failed for {org}/{repo}: {e}")
        if resp.status_code == 200:
            return True
        if resp.status_code == 404:
            return False
        raise GitHubAPIError(f"branch lookup for {org}/{repo} -> {resp.status_code}: {resp.text}")

    def open_pull_requests(self, org: str, repo: str, head_branch: str) -> list[dict] | None:
        """Open PRs with this head, or None when the lookup itself failed."""
        data = self.get_json(
            f"repos/{org}/{repo}/pulls",
            params={"state": "open", "head": f"{org}:{head_branch}"},
        )
        return data if isinstance(data, list) else None

    def create_pull_request(
        self, org: str, repo: str, title: str, body: str, head: str, base: str
    ) -> str:
        try:
            resp = self._request(
                "POST",
                f"repos/{org}/{repo}/pulls",
                json={"title": title, "body": body, "head": head, "base": base},
            )
        except requests.RequestException as e:
            raise GitHubAPIError(f"PR creation failed for {org}/{repo}: {e}")
        if resp.status_code not in (200, 201):
            raise GitHubAPIError(f"PR creation for {org}/{repo} -> {resp.status_code}: {resp.text}")
        return resp.json().get("html_url", "")

    def clone_url(self, org: str, repo: str) -> str:
        if self.token:
            return f"https://x-access-token:{self.token}@{self.clone_host}/{org}/{repo}.git"
        return f"https://{self.clone_host}/{org}/{repo}.git"
