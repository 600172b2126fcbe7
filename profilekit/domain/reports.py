"""
Test report domain objects for profilekit.

SuiteResult holds the counts parsed from one JUnit XML report;
TestReport aggregates several suites for a verification run.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional


@dataclass
class SuiteResult:
    """Counts for one test suite (one JUnit XML report)."""
    name: str
    tests: int = 0
    failures: int = 0
    errors: int = 0
    skipped: int = 0
    duration: float = 0.0
    failed_cases: List[str] = field(default_factory=list)
    report_path: Optional[str] = None
    returncode: Optional[int] = None

    @property
    def passed(self) -> int:
        return max(self.tests - self.failures - self.errors - self.skipped, 0)

    @property
    def success(self) -> bool:
        return self.failures == 0 and self.errors == 0

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'suite': self.name,
            'tests': self.tests,
            'passed': self.passed,
            'failures': self.failures,
            'errors': self.errors,
            'skipped': self.skipped,
            'duration': round(self.duration, 3),
            'success': self.success,
        }
        if self.failed_cases:
            result['failed_cases'] = list(self.failed_cases)
        if self.report_path:
            result['report'] = self.report_path
        if self.returncode is not None:
            result['returncode'] = self.returncode
        return result


@dataclass
class TestReport:
    """Aggregate of several suite results."""
    __test__ = False  # not a pytest test class

    suites: List[SuiteResult] = field(default_factory=list)

    def add(self, suite: SuiteResult) -> None:
        self.suites.append(suite)

    @property
    def tests(self) -> int:
        return sum(s.tests for s in self.suites)

    @property
    def failures(self) -> int:
        return sum(s.failures for s in self.suites)

    @property
    def errors(self) -> int:
        return sum(s.errors for s in self.suites)

    @property
    def skipped(self) -> int:
        return sum(s.skipped for s in self.suites)

    @property
    def passed(self) -> int:
        return sum(s.passed for s in self.suites)

    @property
    def duration(self) -> float:
        return sum(s.duration for s in self.suites)

    @property
    def success(self) -> bool:
        return all(s.success for s in self.suites)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'summary',
            'suites': len(self.suites),
            'tests': self.tests,
            'passed': self.passed,
            'failures': self.failures,
            'errors': self.errors,
            'skipped': self.skipped,
            'duration': round(self.duration, 3),
            'success': self.success,
        }
