"""
github_client.py

Responsibility: isolate all direct GitHub REST API interaction.

Used only when the scaffolded project should get a GitHub remote. Git
operations (remote add, push) are handled by the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests

from initcpp import __version__

API_BASE = "https://api.github.com"


class GitHubError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class RemoteRepo:
    owner: str
    name: str
    html_url: str
    clone_url: str
    default_branch: str

    @classmethod
    def from_payload(cls, owner: str, name: str, data: Any) -> "RemoteRepo":
        try:
            return cls(
                owner=owner,
                name=name,
                html_url=data["html_url"],
                clone_url=data["clone_url"],
                default_branch=data.get("default_branch") or "main",
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise GitHubError(f"Unexpected GitHub API response for {owner}/{name}: missing {e}") from e


class GitHubClient:
    def __init__(self, token: str, api_base: str = API_BASE, session: requests.Session | None = None) -> None:
        if not token.strip():
            raise GitHubError("GitHub token is required.")
        self._api_base = api_base.rstrip("/")
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {token}",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": f"initcpp/{__version__}",
            }
        )

    def _request(self, method: str, path: str, *, json_body: dict[str, Any] | None = None) -> Any:
        try:
            r = self._session.request(method, f"{self._api_base}{path}", json=json_body, timeout=30)
        except requests.RequestException as e:
            raise GitHubError(f"GitHub API request failed {method} {path}: {e}") from e
        if r.status_code >= 400:
            try:
                message = r.json().get("message", r.text)
            except (ValueError, AttributeError):
                message = r.text
            raise GitHubError(f"GitHub API error {r.status_code} {method} {path}: {message}", r.status_code)
        if r.status_code == 204:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise GitHubError(f"GitHub API returned invalid JSON {r.status_code} {method} {path}", r.status_code) from e

    def get_repo(self, owner: str, name: str) -> RemoteRepo | None:
        """Return the repository, or None if it does not exist or is not visible."""
        try:
            data = self._request("GET", f"/repos/{owner}/{name}")
        except GitHubError as e:
            if e.status_code == 404:
                return None
            raise
        return RemoteRepo.from_payload(owner, name, data)

    def create_repo(self, *, owner: str, name: str, private: bool, description: str = "") -> RemoteRepo:
        """
        Create an empty repository under the authenticated user when `owner`
        is the viewer's login, otherwise under the `owner` organization.
        """
        viewer = self._request("GET", "/user")
        if not isinstance(viewer, dict):
            raise GitHubError("Unexpected GitHub API response for /user")
        body = {
            "name": name,
            "private": private,
            "description": description,
            "auto_init": False,
        }
        if owner == str(viewer.get("login") or ""):
            data = self._request("POST", "/user/repos", json_body=body)
        else:
            data = self._request("POST", f"/orgs/{owner}/repos", json_body=body)
        return RemoteRepo.from_payload(owner, name, data)

    def ensure_repo(self, *, owner: str, name: str, private: bool, description: str = "") -> RemoteRepo:
        return self.get_repo(owner, name) or self.create_repo(
            owner=owner, name=name, private=private, description=description
        )
