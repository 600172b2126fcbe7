"""
Git hook service for profilekit.

Implements the three hooks and their installer:

- commit-msg: validate the subject line of the message file
- pre-commit: format staged files, re-stage them, run the validation suite
- pre-push:   validate pushed commit subjects, run the validation suite

Each hook is independent; they share the commit grammar and exit codes.
"""

import fnmatch
import logging
import os
import shlex
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Generator, Iterable, List, Optional, Sequence, Tuple

from ..config import load_config
from ..domain.commit import ValidationResult, extract_subject, validate_with_config
from ..domain.operation import (
    CommandStepResult,
    OperationDetail,
    OperationStatus,
    OperationSummary,
)
from ..exit_codes import InputError, SetupError
from ..infra.git_client import GitClient, GitCommit, NULL_SHA
from ..infra.tool_runner import ToolRunner

logger = logging.getLogger(__name__)

HOOK_NAMES = ("commit-msg", "pre-commit", "pre-push")
HOOK_MARKER = "# installed by profilekit"


@dataclass
class PushedRef:
    """One line of the pre-push hook's stdin."""
    local_ref: str
    local_sha: str
    remote_ref: str
    remote_sha: str

    @property
    def is_delete(self) -> bool:
        return self.local_sha == NULL_SHA

    @property
    def is_new_branch(self) -> bool:
        return self.remote_sha == NULL_SHA


def parse_push_refs(lines: Iterable[str]) -> List[PushedRef]:
    """Parse ``<local ref> <local sha> <remote ref> <remote sha>`` lines."""
    refs = []
    for line in lines:
        parts = line.split()
        if len(parts) != 4:
            if line.strip():
                logger.debug(f"Ignoring malformed pre-push line: {line!r}")
            continue
        refs.append(PushedRef(*parts))
    return refs


def hook_script(name: str, python: Optional[str] = None) -> str:
    """Shell shim that forwards a git hook to ``python -m profilekit``."""
    python = shlex.quote(python or sys.executable)
    return (
        "#!/bin/sh\n"
        f"{HOOK_MARKER}\n"
        f'exec {python} -m profilekit hook {name} "$@"\n'
    )


def matches_patterns(path: str, patterns: Sequence[str]) -> bool:
    name = Path(path).name
    return any(fnmatch.fnmatch(path, p) or fnmatch.fnmatch(name, p) for p in patterns)


class HookService:
    """
    Service behind the git hooks and the hook installer.

    Example:
        service = HookService()
        result = service.commit_msg(".git/COMMIT_EDITMSG")
        if not result.accepted:
            print(result.reason)
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        git_client: Optional[GitClient] = None,
        runner: Optional[ToolRunner] = None,
        cwd: Optional[str] = None
    ):
        """
        Initialize HookService.

        Args:
            config: Configuration dict (loads default if None)
            git_client: GitClient instance (creates new if None)
            runner: ToolRunner for formatter/validation commands
            cwd: Directory the hook runs in (default: current directory)
        """
        self.config = config or load_config()
        hooks_config = self.config.get('hooks', {})
        self.git = git_client or GitClient()
        self.runner = runner or ToolRunner(timeout=int(hooks_config.get('timeout_seconds', 600)))
        self.cwd = cwd or os.getcwd()
        self.last_result: Optional[OperationSummary] = None

    def _require_repo(self) -> str:
        """Work tree root, or SetupError outside a repository."""
        if not self.git.is_git_repo(self.cwd):
            raise SetupError(f"Not a git repository: {self.cwd}")
        return self.git.toplevel(self.cwd) or self.cwd

    # ------------------------------------------------------------------
    # commit-msg
    # ------------------------------------------------------------------

    def validate(self, subject: str) -> ValidationResult:
        return validate_with_config(subject, self.config)

    def commit_msg(self, message_file: str) -> ValidationResult:
        """
        Validate the subject of a commit message file.

        Raises:
            InputError: if the file cannot be read
        """
        path = Path(message_file)
        if not path.is_absolute():
            path = Path(self.cwd) / path
        try:
            message = path.read_text(encoding='utf-8', errors='replace')
        except OSError as e:
            raise InputError(f"Cannot read commit message file {message_file}: {e.strerror or e}") from e

        result = self.validate(extract_subject(message))
        if result.accepted:
            logger.debug(f"Accepted commit subject: {result.subject}")
        return result

    def check_commits(
        self,
        revisions: Optional[Sequence[str]] = None,
        limit: Optional[int] = None
    ) -> List[Tuple[GitCommit, ValidationResult]]:
        """
        Validate the subjects of commits in a revision range.

        Args:
            revisions: git revision arguments (default: HEAD)
            limit: Maximum commits to check (default from config when no range given)

        Raises:
            InputError: if git does not recognise the revisions
        """
        repo = self._require_repo()
        if not revisions and not self.git.has_commits(repo):
            logger.info("No commits yet; nothing to check")
            return []
        if limit is None and not revisions:
            limit = int(self.config.get('commit', {}).get('default_check_count', 20))
        try:
            commits = self.git.log(repo, revisions=revisions, limit=limit, check=True)
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip()
            raise InputError(f"Unknown revision range {' '.join(revisions or ['HEAD'])}: {detail}") from e
        return [(commit, self.validate(commit.subject)) for commit in commits]

    # ------------------------------------------------------------------
    # Commands (formatter, validation suite)
    # ------------------------------------------------------------------

    def run_step(self, name: str, command, cwd: str, action: str = "ran") -> CommandStepResult:
        """
        Run one configured command.

        A missing executable yields a SKIPPED step rather than a failure.
        """
        argv = self.runner.resolve_command(command)
        display = command if isinstance(command, list) else shlex.split(str(command))
        if argv is None:
            tool = display[0] if display else "<empty>"
            logger.warning(f"{tool} not found; skipping {name}")
            return CommandStepResult(
                name=name,
                status=OperationStatus.SKIPPED,
                action="skipped",
                message=f"{tool} not found",
                command=list(display),
            )

        run = self.runner.run(argv, cwd=cwd)
        output = (run.stdout + run.stderr).strip()
        if run.ok:
            return CommandStepResult(
                name=name,
                status=OperationStatus.SUCCESS,
                action=action,
                command=list(display),
                returncode=run.returncode,
                output=output,
            )
        return CommandStepResult(
            name=name,
            status=OperationStatus.FAILED,
            action="failed",
            error=output.splitlines()[-1] if output else f"exit status {run.returncode}",
            command=list(display),
            returncode=run.returncode,
            output=output,
        )

    def run_validation_suite(self, repo: str, summary: OperationSummary) -> Generator[str, None, OperationSummary]:
        """Run each configured validation command in order."""
        commands = self.config.get('hooks', {}).get('validate', []) or []
        if not commands:
            yield "No validation commands configured"
        for command in commands:
            label = command if isinstance(command, str) else " ".join(str(c) for c in command)
            yield f"Validating: {label}"
            summary.add_detail(self.run_step(f"validate: {label}", command, cwd=repo, action="validated"))
        return summary

    # ------------------------------------------------------------------
    # pre-commit
    # ------------------------------------------------------------------

    def pre_commit(self) -> Generator[str, None, OperationSummary]:
        """
        Format staged files, re-stage them, then run the validation suite.

        Yields:
            Progress messages

        Returns:
            OperationSummary; failed when formatting, staging or validation fails
        """
        repo = self._require_repo()
        summary = OperationSummary(operation="pre_commit")
        self.last_result = summary

        format_config = self.config.get('hooks', {}).get('format', {}) or {}
        command = format_config.get('command') or []
        patterns = format_config.get('patterns') or ["*"]

        staged = self.git.staged_files(repo)
        files = [f for f in staged if matches_patterns(f, patterns)]

        if not command:
            yield "No formatter configured"
        elif not files:
            yield "No staged files to format"
        else:
            base = command if isinstance(command, list) else shlex.split(command)
            yield f"Formatting {len(files)} staged file(s)"
            step = self.run_step("format", list(base) + files, cwd=repo, action="formatted")
            summary.add_detail(step)

            if step.status is OperationStatus.SUCCESS:
                existing = [f for f in files if (Path(repo) / f).exists()]
                if self.git.add(repo, existing):
                    summary.add_detail(OperationDetail(
                        name="restage",
                        status=OperationStatus.SUCCESS,
                        action="staged",
                        message=f"{len(existing)} file(s) re-staged",
                    ))
                else:
                    summary.add_detail(OperationDetail(
                        name="restage",
                        status=OperationStatus.FAILED,
                        action="failed",
                        error="git add failed for formatted files",
                    ))

        yield from self.run_validation_suite(repo, summary)
        return summary

    # ------------------------------------------------------------------
    # pre-push
    # ------------------------------------------------------------------

    def pre_push(
        self,
        remote: Optional[str] = None,
        url: Optional[str] = None,
        ref_lines: Iterable[str] = ()
    ) -> Generator[str, None, OperationSummary]:
        """
        Validate the commits being pushed, then run the validation suite.

        Args:
            remote: Remote name git passes as the first argument
            url: Remote URL git passes as the second argument
            ref_lines: Lines git writes to the hook's stdin
        """
        repo = self._require_repo()
        summary = OperationSummary(operation="pre_push")
        self.last_result = summary

        if url:
            yield f"Pushing to {remote or url} ({url})"

        if self.config.get('hooks', {}).get('pre_push', {}).get('check_commits', True):
            for ref in parse_push_refs(ref_lines):
                if ref.is_delete:
                    continue
                if ref.is_new_branch:
                    not_on = f"--remotes={remote}" if remote else "--remotes"
                    revisions = [ref.local_sha, "--not", not_on]
                else:
                    revisions = [f"{ref.remote_sha}..{ref.local_sha}"]

                yield f"Checking commit messages on {ref.local_ref}"
                for commit in self.git.log(repo, revisions=revisions):
                    result = self.validate(commit.subject)
                    summary.add_detail(OperationDetail(
                        name=f"commit {commit.short_hash}",
                        status=OperationStatus.SUCCESS if result.accepted else OperationStatus.FAILED,
                        action="validated" if result.accepted else "rejected",
                        message=commit.subject,
                        error=None if result.accepted else result.reason,
                    ))

        yield from self.run_validation_suite(repo, summary)
        return summary

    # ------------------------------------------------------------------
    # Installation
    # ------------------------------------------------------------------

    def _hook_targets(self, hooks: Optional[Sequence[str]]) -> Tuple[Path, List[str]]:
        repo = self._require_repo()
        names = list(hooks) if hooks else list(HOOK_NAMES)
        unknown = [n for n in names if n not in HOOK_NAMES]
        if unknown:
            raise InputError(f"Unknown hook(s): {', '.join(unknown)}; choose from {', '.join(HOOK_NAMES)}")
        hooks_dir = self.git.hooks_dir(repo)
        if hooks_dir is None:
            raise SetupError(f"Cannot locate the hooks directory of {repo}")
        return hooks_dir, names

    @staticmethod
    def is_managed(path: Path) -> bool:
        """True when a hook file was written by this tool."""
        try:
            return HOOK_MARKER in path.read_text(encoding='utf-8', errors='replace')
        except OSError:
            return False

    def install(
        self,
        hooks: Optional[Sequence[str]] = None,
        force: bool = False,
        dry_run: bool = False
    ) -> OperationSummary:
        """
        Write hook shims into the repository's hooks directory.

        Foreign hooks are left alone unless ``force`` is set, in which case
        they are kept next to the shim as ``<name>.bak``.
        """
        hooks_dir, names = self._hook_targets(hooks)
        summary = OperationSummary(operation="install_hooks", dry_run=dry_run)
        self.last_result = summary

        for name in names:
            path = hooks_dir / name
            exists = path.exists()
            managed = exists and self.is_managed(path)

            if exists and not managed and not force:
                summary.add_detail(OperationDetail(
                    name=name,
                    status=OperationStatus.SKIPPED,
                    action="skipped",
                    message=f"{path} exists and was not installed by profilekit (use --force)",
                ))
                continue

            if dry_run:
                summary.add_detail(OperationDetail(
                    name=name,
                    status=OperationStatus.DRY_RUN,
                    action="would_install",
                    metadata={'path': str(path)},
                ))
                continue

            hooks_dir.mkdir(parents=True, exist_ok=True)
            if exists and not managed:
                backup = path.with_name(f"{name}.bak")
                path.replace(backup)
                logger.info(f"Existing {name} hook moved to {backup}")

            path.write_text(hook_script(name), encoding='utf-8')
            path.chmod(0o755)
            summary.add_detail(OperationDetail(
                name=name,
                status=OperationStatus.SUCCESS,
                action="updated" if managed else "installed",
                metadata={'path': str(path)},
            ))

        return summary

    def uninstall(self, hooks: Optional[Sequence[str]] = None, dry_run: bool = False) -> OperationSummary:
        """Remove installed shims, restoring any ``.bak`` hook they replaced."""
        hooks_dir, names = self._hook_targets(hooks)
        summary = OperationSummary(operation="uninstall_hooks", dry_run=dry_run)
        self.last_result = summary

        for name in names:
            path = hooks_dir / name
            if not path.exists() or not self.is_managed(path):
                summary.add_detail(OperationDetail(
                    name=name,
                    status=OperationStatus.SKIPPED,
                    action="skipped",
                    message="not installed by profilekit",
                ))
                continue

            if dry_run:
                summary.add_detail(OperationDetail(name=name, status=OperationStatus.DRY_RUN, action="would_remove"))
                continue

            path.unlink()
            backup = path.with_name(f"{name}.bak")
            restored = backup.exists()
            if restored:
                backup.replace(path)
            summary.add_detail(OperationDetail(
                name=name,
                status=OperationStatus.SUCCESS,
                action="removed",
                message="previous hook restored" if restored else None,
            ))

        return summary
