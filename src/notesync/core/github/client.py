"""
GitHub REST client for notesync.

Covers the three calls remote provisioning needs: resolve the authenticated
login, probe whether a repository exists, and create a private repository.
Requires a token from ``NOTESYNC_GITHUB_TOKEN``, ``GITHUB_TOKEN``,
``GH_TOKEN``, or an authenticated GitHub CLI (``gh auth token``).
"""

from __future__ import annotations

import logging
import subprocess
from typing import Any

import httpx

from notesync import __version__
from notesync.core.config.env import token_from_env
from notesync.core.exceptions import AuthFailure, GitHubApiError
from notesync.core.github.models import GitHubRepository

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"


def resolve_token() -> str | None:
    """
    Find a GitHub token.

    Environment variables win; otherwise ask the GitHub CLI.

    Returns:
        Token string, or None if nothing is available
    """
    if found := token_from_env():
        var, token = found
        logger.debug("Using GitHub token from %s", var)
        return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            check=False,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None

    if result.returncode == 0 and result.stdout.strip():
        return result.stdout.strip()
    return None


class GitHubClient:
    """
    Async client for the GitHub REST API.

    Example:
        >>> async with GitHubClient.from_environment() as client:
        ...     login = await client.get_login()
        ...     repo = await client.get_repository(login, "notes")
        >>> repo.remote_url()
        'https://github.com/octo/notes.git'
    """

    def __init__(
        self,
        token: str,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            token: GitHub token with permission to create repositories
            api_url: REST API base URL
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.api_url = api_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {token}",
                "User-Agent": f"notesync/{__version__}",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_environment(cls, api_url: str = DEFAULT_API_URL) -> GitHubClient:
        """
        Build a client from the ambient credentials.

        Raises:
            AuthFailure: If no token can be found
        """
        token = resolve_token()
        if not token:
            raise AuthFailure(
                "No GitHub credentials found.\n"
                "Set GITHUB_TOKEN (repo scope) or authenticate the GitHub CLI: gh auth login"
            )
        return cls(token, api_url=api_url)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        logger.debug("GitHub API %s %s", method, path)
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise GitHubApiError(f"GitHub request failed: {method} {path}: {e}") from e

        if response.status_code in (401, 403):
            raise AuthFailure(
                f"GitHub rejected the credentials ({response.status_code}) for {method} {path}.\n"
                "Check that the token is valid and has the repo scope: gh auth refresh -s repo",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise GitHubApiError(
                f"Failed to parse GitHub API response: {e}", status_code=response.status_code
            ) from e
        if not isinstance(data, dict):
            raise GitHubApiError(
                "Unexpected GitHub API response shape", status_code=response.status_code
            )
        return data

    @staticmethod
    def _error_text(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text.strip() or "Unknown error"
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])
        return "Unknown error"

    async def get_login(self) -> str:
        """
        Resolve the account the token belongs to (``GET /user``).

        Raises:
            AuthFailure: If the token is rejected
            GitHubApiError: On any other unexpected response
        """
        response = await self._request("GET", "/user")
        if response.status_code != 200:
            raise GitHubApiError(
                f"Failed to resolve GitHub user: {self._error_text(response)}",
                status_code=response.status_code,
            )
        login = self._json(response).get("login")
        if not login:
            raise GitHubApiError("GitHub user response has no login", status_code=200)
        return str(login)

    async def get_repository(self, owner: str, name: str) -> GitHubRepository | None:
        """
        Fetch a repository (``GET /repos/{owner}/{name}``).

        Returns:
            The repository, or None if it does not exist (404)
        """
        response = await self._request("GET", f"/repos/{owner}/{name}")
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise GitHubApiError(
                f"Failed to look up {owner}/{name}: {self._error_text(response)}",
                status_code=response.status_code,
            )
        return GitHubRepository.from_api(self._json(response))

    async def create_repository(
        self, name: str, *, private: bool = True, description: str = ""
    ) -> GitHubRepository:
        """
        Create a repository under the authenticated account (``POST /user/repos``).

        Raises:
            GitHubApiError: If GitHub does not answer 201 (422 when the name is taken)
        """
        response = await self._request(
            "POST",
            "/user/repos",
            json={"name": name, "private": private, "description": description},
        )
        if response.status_code != 201:
            raise GitHubApiError(
                f"Failed to create repository {name}: {self._error_text(response)}",
                status_code=response.status_code,
            )
        repository = GitHubRepository.from_api(self._json(response))
        logger.info("Created GitHub repository %s/%s", repository.owner, repository.name)
        return repository
