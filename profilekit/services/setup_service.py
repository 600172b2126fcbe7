"""
Development environment setup for profilekit.

Checks the tools the other commands rely on, then prepares the
environment: default configuration, metrics directory and git hooks.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Generator, List, Optional

from packaging.version import InvalidVersion, Version

from ..config import generate_default_config, get_config_dir, get_config_path, load_config
from ..conversions import TOOLS
from ..domain.operation import OperationDetail, OperationStatus, OperationSummary
from ..exit_codes import SetupError
from ..infra.git_client import GitClient
from ..infra.tool_runner import ToolRunner
from .hook_service import HookService

logger = logging.getLogger(__name__)


@dataclass
class ToolCheck:
    """Availability and version of one tool."""
    name: str
    required: bool = False
    path: Optional[str] = None
    version: Optional[str] = None
    min_version: Optional[str] = None
    status: str = "ok"  # ok, missing, outdated, unknown_version

    @property
    def ok(self) -> bool:
        return self.status in ("ok", "unknown_version")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'tool',
            'tool': self.name,
            'required': self.required,
            'status': self.status,
            'path': self.path,
            'version': self.version,
            'min_version': self.min_version,
        }


@dataclass
class SetupReport:
    """Result of a setup run."""
    checks: List[ToolCheck] = field(default_factory=list)
    summary: OperationSummary = field(default_factory=lambda: OperationSummary(operation="setup"))

    @property
    def missing_required(self) -> List[ToolCheck]:
        return [c for c in self.checks if c.required and not c.ok]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'setup',
            'tools': [c.to_dict() for c in self.checks],
            'steps': [d.to_dict() for d in self.summary.details],
            'dry_run': self.summary.dry_run,
        }


def compare_versions(found: Optional[str], minimum: Optional[str]) -> str:
    """Status for a found version against a minimum."""
    if not minimum:
        return "ok"
    if not found:
        return "unknown_version"
    try:
        return "ok" if Version(found) >= Version(minimum) else "outdated"
    except InvalidVersion:
        return "unknown_version"


class SetupService:
    """
    Service that bootstraps a development environment.

    Example:
        service = SetupService()
        report = yield from service.run(dry_run=True)
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        runner: Optional[ToolRunner] = None,
        git_client: Optional[GitClient] = None,
        cwd: Optional[str] = None
    ):
        self.config = config or load_config()
        self.setup_config = self.config.get('setup', {})
        self.runner = runner or ToolRunner(
            overrides=self.config.get('conversions', {}).get('tools', {}),
        )
        self.git = git_client or GitClient()
        self.cwd = cwd or os.getcwd()

    def check_tool(self, name: str, required: bool = False) -> ToolCheck:
        """Locate a tool and compare its version with the configured minimum."""
        minimum = self.setup_config.get('min_versions', {}).get(name)
        check = ToolCheck(name=name, required=required, min_version=minimum)

        spec = TOOLS.get(name)
        path = self.runner.resolve(spec) if spec else self.runner.which(name)
        if not path:
            check.status = "missing"
            return check
        check.path = path

        version_args = spec.version_args if spec else ("--version",)
        check.version = self.runner.version(path, version_args)
        check.status = compare_versions(check.version, minimum)
        return check

    def check_tools(self) -> List[ToolCheck]:
        checks = [self.check_tool(n, required=True) for n in self.setup_config.get('required_tools', [])]
        required = {c.name for c in checks}
        checks.extend(
            self.check_tool(n) for n in self.setup_config.get('optional_tools', []) if n not in required
        )
        return checks

    def run(
        self,
        dry_run: bool = False,
        install_hooks: bool = True,
        force_hooks: bool = False
    ) -> Generator[str, None, SetupReport]:
        """
        Check tools, then write config, create the metrics directory and install hooks.

        Yields:
            Progress messages

        Raises:
            SetupError: a required tool is missing or older than its minimum
        """
        report = SetupReport()
        report.summary.dry_run = dry_run

        yield "Checking tools"
        report.checks = self.check_tools()
        for check in report.checks:
            if check.status == "missing":
                if check.required:
                    yield f"{check.name}: missing (required)"
                else:
                    logger.warning(f"Optional tool {check.name} not found")
            elif check.status == "outdated":
                message = f"{check.name} {check.version} is older than {check.min_version}"
                if check.required:
                    yield message
                else:
                    logger.warning(message)
            else:
                yield f"{check.name}: {check.version or 'found'}"

        if report.missing_required:
            names = ", ".join(
                f"{c.name} ({c.status})" for c in report.missing_required
            )
            raise SetupError(f"Required tools unavailable: {names}")

        report.summary.add_detail(self._write_config(dry_run))
        report.summary.add_detail(self._create_metrics_dir(dry_run))

        if install_hooks:
            if self.git.is_git_repo(self.cwd):
                yield "Installing git hooks"
                hooks = HookService(config=self.config, git_client=self.git, runner=self.runner, cwd=self.cwd)
                for detail in hooks.install(force=force_hooks, dry_run=dry_run).details:
                    detail.name = f"hook {detail.name}"
                    report.summary.add_detail(detail)
            else:
                report.summary.add_detail(OperationDetail(
                    name="hooks",
                    status=OperationStatus.SKIPPED,
                    action="skipped",
                    message="not inside a git repository",
                ))

        return report

    def _write_config(self, dry_run: bool) -> OperationDetail:
        existing = get_config_path()
        if existing.exists():
            return OperationDetail(name="config", status=OperationStatus.SKIPPED, action="skipped",
                                   message=f"{existing} already exists")
        target = get_config_dir() / 'config.json'
        if dry_run:
            return OperationDetail(name="config", status=OperationStatus.DRY_RUN, action="would_write",
                                   metadata={'path': str(target)})
        written = generate_default_config(target)
        return OperationDetail(name="config", status=OperationStatus.SUCCESS, action="written",
                               metadata={'path': str(written)})

    def _create_metrics_dir(self, dry_run: bool) -> OperationDetail:
        directory = Path(self.config.get('metrics', {}).get('directory', '~/.profilekit/metrics')).expanduser()
        if directory.is_dir():
            return OperationDetail(name="metrics directory", status=OperationStatus.SKIPPED,
                                   action="skipped", message=f"{directory} exists")
        if dry_run:
            return OperationDetail(name="metrics directory", status=OperationStatus.DRY_RUN,
                                   action="would_create", metadata={'path': str(directory)})
        directory.mkdir(parents=True, exist_ok=True)
        return OperationDetail(name="metrics directory", status=OperationStatus.SUCCESS,
                               action="created", metadata={'path': str(directory)})
