"""
Operation result domain objects for profilekit.

Provides standardized result types for operations that shell out to
external tools (conversions, hook steps, tool checks).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional


class OperationStatus(Enum):
    """Status of an individual operation."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
    DRY_RUN = "dry_run"


@dataclass
class OperationDetail:
    """
    Details of a single operation.

    Used to track what happened to each item during multi-step runs.
    """
    name: str
    status: OperationStatus
    action: str  # e.g., "converted", "formatted", "installed", "would_install"
    message: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'name': self.name,
            'status': self.status.value,
            'action': self.action,
        }
        if self.message:
            result['message'] = self.message
        if self.error:
            result['error'] = self.error
        if self.metadata:
            result.update(self.metadata)
        return result


@dataclass
class ConversionResult(OperationDetail):
    """Result of running one format conversion."""
    input_path: Optional[str] = None
    output_path: Optional[str] = None
    tool: Optional[str] = None
    returncode: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['input'] = self.input_path
        result['output'] = self.output_path
        if self.tool:
            result['tool'] = self.tool
        if self.returncode is not None:
            result['returncode'] = self.returncode
        return result


@dataclass
class CommandStepResult(OperationDetail):
    """Result of running one validation or formatter command."""
    command: List[str] = field(default_factory=list)
    returncode: Optional[int] = None
    output: str = ""

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['command'] = list(self.command)
        if self.returncode is not None:
            result['returncode'] = self.returncode
        return result


@dataclass
class OperationSummary:
    """
    Outcome of a run made of several steps.

    Batch conversions, the hook validation suites and hook installation
    all report through one of these; counts are derived from ``details``.
    """
    operation: str  # e.g., "convert_batch", "pre_commit", "install_hooks"
    dry_run: bool = False
    details: List[OperationDetail] = field(default_factory=list)

    def _count(self, *statuses: OperationStatus) -> int:
        return sum(1 for d in self.details if d.status in statuses)

    @property
    def total(self) -> int:
        return len(self.details)

    @property
    def successful(self) -> int:
        # a dry run that would have acted counts as done
        return self._count(OperationStatus.SUCCESS, OperationStatus.DRY_RUN)

    @property
    def skipped(self) -> int:
        return self._count(OperationStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(OperationStatus.FAILED)

    @property
    def errors(self) -> List[str]:
        """``name: error`` for every failed step that reported an error."""
        return [f"{d.name}: {d.error}" for d in self.details
                if d.status is OperationStatus.FAILED and d.error]

    @property
    def success(self) -> bool:
        return self.failed == 0

    def add_detail(self, detail: OperationDetail) -> None:
        self.details.append(detail)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'summary',
            'operation': self.operation,
            'dry_run': self.dry_run,
            'total': self.total,
            'successful': self.successful,
            'skipped': self.skipped,
            'failed': self.failed,
            'errors': self.errors,
        }
