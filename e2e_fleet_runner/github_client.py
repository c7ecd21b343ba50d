"""GitHub REST client used to resolve repositories before cloning."""

import logging
from dataclasses import dataclass

import requests

from .config import DEFAULT_GITHUB_API_URL
from .errors import LookupFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepositoryInfo:
    """The parts of a GitHub repository record the acquirer needs."""
    full_name: str
    clone_url: str
    default_branch: str = ""


class GitHubClient:
    """Client for the GitHub repositories API."""

    def __init__(self, token: str, base_url: str = DEFAULT_GITHUB_API_URL, timeout: int = 30):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": "e2e-fleet-runner/0.1.0",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "Authorization": f"Bearer {token}",
        })

    def get_repository(self, owner: str, name: str) -> RepositoryInfo:
        """Resolve owner/name to its canonical name and clone URL.

        Raises:
            LookupFailure: the request failed or the response has no clone URL.
        """
        repo = f"{owner}/{name}"
        url = f"{self.base_url}/repos/{owner}/{name}"
        logger.debug(f"Looking up repository {repo} at {url}")

        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise LookupFailure(repo, f"repository lookup failed: {e}") from e
        except ValueError as e:
            raise LookupFailure(repo, f"invalid response from GitHub: {e}") from e

        if not isinstance(data, dict) or not data.get("clone_url"):
            raise LookupFailure(repo, "response has no clone_url")

        return RepositoryInfo(
            full_name=data.get("full_name") or repo,
            clone_url=data["clone_url"],
            default_branch=data.get("default_branch") or "",
        )
