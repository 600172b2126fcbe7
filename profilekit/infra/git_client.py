"""
Git client infrastructure for profilekit.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from hook logic
"""

import subprocess
from dataclasses import dataclass
from typing import Optional, List, Sequence, Tuple
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

NULL_SHA = "0" * 40
_FIELD_SEP = "\x1f"


@dataclass
class GitCommit:
    """A git commit with the fields the commit checks need."""
    hash: str
    short_hash: str
    author: str
    subject: str


class GitClient:
    """
    Abstraction over git commands.

    Example:
        client = GitClient()
        if client.is_git_repo("."):
            for path in client.staged_files("."):
                print(path)
    """

    def __init__(self, timeout: int = 30, executable: str = "git"):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: 30)
            executable: git binary to run
        """
        self.timeout = timeout
        self.executable = executable

    def _run(
        self,
        args: Sequence[str],
        cwd: str,
        check: bool = False,
        strip: bool = True
    ) -> Tuple[Optional[str], int]:
        """
        Run a git command.

        Args:
            args: Arguments after ``git``
            cwd: Working directory
            check: Raise on non-zero exit
            strip: Strip surrounding whitespace from stdout

        Returns:
            Tuple of (stdout, returncode)
        """
        cmd = [self.executable] + list(args)
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out: {' '.join(cmd)}")
            return None, -1
        except OSError as e:
            logger.error(f"Git command failed: {' '.join(cmd)} - {e}")
            return None, -1

        if check and result.returncode != 0:
            raise subprocess.CalledProcessError(
                result.returncode,
                cmd,
                output=result.stdout,
                stderr=result.stderr
            )

        if result.returncode != 0 and result.stderr:
            logger.debug(f"git {' '.join(args)}: {result.stderr.strip()}")

        output = result.stdout
        if strip and output:
            output = output.strip()
        return output or None, result.returncode

    def is_git_repo(self, path: str) -> bool:
        """Check if path is inside a git work tree."""
        output, code = self._run(["rev-parse", "--is-inside-work-tree"], cwd=path)
        return code == 0 and output == "true"

    def toplevel(self, path: str) -> Optional[str]:
        """Absolute path of the work tree root."""
        output, code = self._run(["rev-parse", "--show-toplevel"], cwd=path)
        if code == 0 and output:
            return output
        return None

    def has_commits(self, path: str) -> bool:
        """False on an unborn branch (a repository with no commits yet)."""
        _, code = self._run(["rev-parse", "--verify", "--quiet", "HEAD"], cwd=path)
        return code == 0

    def hooks_dir(self, path: str) -> Optional[Path]:
        """
        Directory git reads hooks from.

        Honours ``core.hooksPath`` and worktrees because git itself
        resolves the path.
        """
        output, code = self._run(["rev-parse", "--git-path", "hooks"], cwd=path)
        if code != 0 or not output:
            return None
        hooks = Path(output)
        if not hooks.is_absolute():
            hooks = Path(path) / hooks
        return hooks.resolve()

    def staged_files(self, path: str) -> List[str]:
        """
        Files staged for commit that still have content (added, copied,
        modified, renamed), relative to the work tree root.
        """
        output, code = self._run(
            ["diff", "--cached", "--name-only", "--diff-filter=ACMR", "-z"],
            cwd=path,
            strip=False
        )
        if code != 0 or not output:
            return []
        return [name for name in output.split("\0") if name]

    def add(self, path: str, files: Sequence[str]) -> bool:
        """
        Stage files.

        Returns:
            True if successful (or nothing to stage)
        """
        if not files:
            return True
        _, code = self._run(["add", "--"] + list(files), cwd=path)
        return code == 0

    def log(
        self,
        path: str,
        revisions: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        check: bool = False
    ) -> List[GitCommit]:
        """
        Get commits reachable from the given revisions.

        Args:
            path: Path to git repository
            revisions: Revision arguments (e.g. ``["main..HEAD"]`` or
                ``[sha, "--not", "--remotes"]``); defaults to HEAD
            limit: Maximum commits to return
            check: Raise CalledProcessError for unknown revisions

        Returns:
            List of GitCommit objects, newest first
        """
        args = ["log", f"--format=%H{_FIELD_SEP}%h{_FIELD_SEP}%an{_FIELD_SEP}%s"]
        if limit:
            args.append(f"-n{limit}")
        args.extend(revisions or ["HEAD"])
        args.append("--")

        output, code = self._run(args, cwd=path, check=check)
        if code != 0 or not output:
            return []

        commits = []
        for line in output.split('\n'):
            parts = line.split(_FIELD_SEP, 3)
            if len(parts) < 4:
                continue
            commits.append(GitCommit(
                hash=parts[0].strip(),
                short_hash=parts[1].strip(),
                author=parts[2].strip(),
                subject=parts[3].strip()
            ))

        return commits

    def version(self) -> Optional[str]:
        """``git --version`` output, or None when git is not runnable."""
        output, code = self._run(["--version"], cwd=".")
        if code == 0 and output:
            return output
        return None
