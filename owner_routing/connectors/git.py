"""Git history connector."""

import asyncio
from collections import Counter
from pathlib import Path

import structlog

from owner_routing.connectors.base import BaseConnector

logger = structlog.get_logger()


class GitHistoryClient(BaseConnector):
    """Runs read-only git queries against a local checkout.

    Every query returns an empty/None result instead of raising when git
    is missing or the directory is not a repository.
    """

    def __init__(self, repo_root: Path, git_binary: str = "git"):
        super().__init__("git")
        self.repo_root = Path(repo_root)
        self._git = git_binary

    async def _run(self, *args: str) -> str | None:
        cmd = [self._git, "-C", str(self.repo_root), *args]
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await proc.communicate()
        except OSError as e:
            logger.warning("git unavailable", command=args[0] if args else "", error=str(e))
            return None

        if proc.returncode != 0:
            logger.debug(
                "git command failed",
                command=args[0] if args else "",
                returncode=proc.returncode,
                stderr=stderr.decode("utf-8", errors="replace").strip(),
            )
            return None
        return stdout.decode("utf-8", errors="replace")

    async def connect(self) -> None:
        self._connected = await self.health_check()
        if not self._connected:
            logger.warning("Not a git repository", repo_root=str(self.repo_root))

    async def disconnect(self) -> None:
        self._connected = False

    async def health_check(self) -> bool:
        output = await self._run("rev-parse", "--is-inside-work-tree")
        return output is not None and output.strip() == "true"

    async def author_commit_counts(self, path: str, since: str) -> list[tuple[str, int]]:
        """
        Commit counts per author for a path within a time window.

        Args:
            path: Repository-relative path
            since: Any date git accepts, e.g. "6 months ago"

        Returns:
            (author, count) pairs, most commits first; ties keep the
            order in which authors first appear (most recent first).
        """
        output = await self._run(
            "log",
            f"--since={since}",
            "--pretty=format:%an",
            "--",
            path,
        )
        if not output:
            return []

        counts = Counter(line.strip() for line in output.splitlines() if line.strip())
        return counts.most_common()

    async def latest_email(self, author: str) -> str | None:
        """Email address on the author's most recent commit."""
        output = await self._run(
            "log",
            "--fixed-strings",
            f"--author={author}",
            "--format=%ae",
            "-1",
        )
        if not output or not output.strip():
            return None
        return output.strip().splitlines()[0]

    async def changed_files(self, base: str, head: str = "HEAD") -> list[str]:
        """Files changed between two commits, falling back to the full tree at head."""
        output = await self._run("diff", "--name-only", f"{base}...{head}")
        if output is None:
            output = await self._run("ls-tree", "-r", "--name-only", head)
        if not output:
            return []
        return [line.strip() for line in output.splitlines() if line.strip()]
