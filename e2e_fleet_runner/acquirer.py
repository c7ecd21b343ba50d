"""
Repository acquisition: GitHub lookup plus shallow clone, fanned out concurrently.
"""

import asyncio
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Sequence

from .errors import FetchFailure
from .github_client import GitHubClient
from .models import RepoIdentifier

logger = logging.getLogger(__name__)


def _resolve(future: asyncio.Future, result: Any = None, error: Any = None):
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


def run_in_daemon_thread(func: Callable, *args) -> asyncio.Future:
    """Run a blocking call on a daemon thread and await its result.

    Unlike asyncio.to_thread, an abandoned call does not hold up event loop
    shutdown or interpreter exit.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def _target():
        try:
            result = func(*args)
        except Exception as e:
            callback = (_resolve, future, None, e)
        else:
            callback = (_resolve, future, result, None)
        try:
            loop.call_soon_threadsafe(*callback)
        except RuntimeError:
            # loop already closed after a fail-fast abort
            pass

    threading.Thread(target=_target, name=f"lookup-{getattr(func, '__name__', 'call')}", daemon=True).start()
    return future


class RepositoryAcquirer:
    """Resolves identifiers and clones them under a fixed root."""

    def __init__(self, client: GitHubClient, repos_dir: Path,
                 git_binary: str = "git", reuse_existing: bool = True):
        """
        Args:
            client: Authenticated GitHub client used for lookups
            repos_dir: Root directory for clones
            git_binary: git executable
            reuse_existing: Keep an existing checkout instead of failing the clone
        """
        self.client = client
        self.repos_dir = repos_dir
        self.git_binary = git_binary
        self.reuse_existing = reuse_existing

    def target_dir(self, repo: RepoIdentifier) -> Path:
        return self.repos_dir / repo.dir_name

    async def acquire(self, raw: str) -> Path:
        """Acquire one repository and return its local path.

        Raises:
            InvalidIdentifier: raw is not owner/name
            LookupFailure: GitHub could not resolve the repository
            FetchFailure: git clone failed
        """
        repo = RepoIdentifier.parse(raw)
        info = await run_in_daemon_thread(self.client.get_repository, repo.owner, repo.name)
        dest = self.target_dir(repo)

        if self.reuse_existing and (dest / ".git").is_dir():
            logger.info(f"Repository {info.full_name} already cloned at {dest}")
            return dest

        branch = info.default_branch or "default branch"
        logger.info(f"Cloning repository: {info.full_name} ({branch})")
        try:
            proc = await asyncio.create_subprocess_exec(
                self.git_binary, "clone", "--depth=1", info.clone_url, str(dest),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise FetchFailure(raw, f"failed to start git: {e}") from e

        try:
            _, stderr = await proc.communicate()
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
            raise
        if proc.returncode != 0:
            details = (stderr or b"").decode(errors="replace").strip()
            message = f"git clone failed (code {proc.returncode})"
            raise FetchFailure(raw, f"{message}: {details}" if details else message)

        logger.debug(f"Cloned {info.full_name} into {dest}")
        return dest


async def acquire_all(acquirer: RepositoryAcquirer, repos: Sequence[str]) -> list[Path]:
    """Acquire every repository concurrently, failing on the first error.

    One task per repository, no concurrency cap. Returns as soon as all tasks
    have finished or one has failed; in the latter case the earliest-listed
    failed repository's error is raised and tasks still in flight are left
    to the caller's event loop, which cancels them when it closes.
    """
    if not repos:
        return []

    tasks = [asyncio.create_task(acquirer.acquire(repo), name=repo) for repo in repos]
    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)

    errors = [task.exception() for task in tasks if task in done]
    errors = [e for e in errors if e is not None]
    if errors:
        if pending:
            logger.debug(f"Aborting with {len(pending)} acquisitions still in flight")
        raise errors[0]

    return [task.result() for task in tasks]
