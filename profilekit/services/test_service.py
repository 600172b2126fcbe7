"""
Test verification service for profilekit.

Runs the configured test suites with a JUnit XML report per suite,
reads JUnit reports back into SuiteResult counts, and finds source
modules that have no matching test module.
"""

import logging
import os
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Any, Generator, Iterable, List, Optional, Sequence

from ..config import load_config
from ..domain.reports import SuiteResult, TestReport
from ..exit_codes import InputError, ToolUnavailableError
from ..infra.tool_runner import ToolRunner

logger = logging.getLogger(__name__)

IGNORED_MODULES = {"__init__.py", "__main__.py", "conftest.py", "setup.py"}


def _int_attr(element: ET.Element, name: str) -> Optional[int]:
    value = element.get(name)
    if value in (None, ""):
        return None
    try:
        return int(float(value))
    except ValueError:
        return None


def _float_attr(element: ET.Element, name: str) -> float:
    try:
        return float(element.get(name) or 0)
    except ValueError:
        return 0.0


def parse_junit(path: Path, name: Optional[str] = None) -> SuiteResult:
    """
    Read a JUnit XML report into a SuiteResult.

    Accepts a ``<testsuites>`` root or a single ``<testsuite>``. Counts come
    from the suite attributes, falling back to the ``<testcase>`` elements
    when an attribute is absent.

    Raises:
        InputError: if the file is missing or is not valid XML
    """
    path = Path(path)
    try:
        root = ET.parse(path).getroot()
    except FileNotFoundError:
        raise InputError(f"JUnit report not found: {path}") from None
    except (ET.ParseError, OSError) as e:
        raise InputError(f"Cannot parse JUnit report {path}: {e}") from e

    result = SuiteResult(name=name or path.stem, report_path=str(path))
    suites = list(root.iter('testsuite')) or [root]

    for suite in suites:
        cases = suite.findall('testcase')
        tests = _int_attr(suite, 'tests')
        failures = _int_attr(suite, 'failures')
        errors = _int_attr(suite, 'errors')
        skipped = _int_attr(suite, 'skipped')
        if skipped is None:
            skipped = _int_attr(suite, 'skips')

        result.tests += tests if tests is not None else len(cases)
        result.failures += failures if failures is not None else sum(
            1 for c in cases if c.find('failure') is not None)
        result.errors += errors if errors is not None else sum(
            1 for c in cases if c.find('error') is not None)
        result.skipped += skipped if skipped is not None else sum(
            1 for c in cases if c.find('skipped') is not None)
        result.duration += _float_attr(suite, 'time')

        for case in cases:
            if case.find('failure') is not None or case.find('error') is not None:
                classname = case.get('classname')
                case_name = case.get('name', '?')
                result.failed_cases.append(f"{classname}::{case_name}" if classname else case_name)

    return result


def find_reports(paths: Iterable[str]) -> List[Path]:
    """Expand directories to the ``*.xml`` files they contain."""
    reports = []
    for entry in paths:
        path = Path(entry)
        if path.is_dir():
            reports.extend(sorted(path.glob('*.xml')))
        else:
            reports.append(path)
    return reports


class TestService:
    """
    Service for running and verifying test suites.

    Example:
        service = TestService()
        report = yield from service.run(["unit"])
        problems = service.check(report, min_tests=10)
    """
    __test__ = False  # not a pytest test class

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        runner: Optional[ToolRunner] = None,
        root: Optional[str] = None
    ):
        """
        Initialize TestService.

        Args:
            config: Configuration dict (loads default if None)
            runner: ToolRunner instance (creates one if None)
            root: Project directory suites are relative to (default: cwd)
        """
        self.config = config or load_config()
        self.tests_config = self.config.get('tests', {})
        self.runner = runner or ToolRunner(timeout=int(self.tests_config.get('timeout_seconds', 3600)))
        self.root = Path(root or os.getcwd())
        self.last_result: Optional[TestReport] = None

    @property
    def suites(self) -> Dict[str, str]:
        return dict(self.tests_config.get('suites', {}))

    def results_dir(self) -> Path:
        return self.root / self.tests_config.get('results_directory', '.test-results')

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def run(
        self,
        suites: Optional[Sequence[str]] = None,
        extra_args: Sequence[str] = ()
    ) -> Generator[str, None, TestReport]:
        """
        Run suites one after another through the configured runner.

        Suites whose directory does not exist are skipped.

        Yields:
            Progress messages

        Returns:
            TestReport with one SuiteResult per suite that ran

        Raises:
            InputError: unknown suite name, or no suite directory exists
            ToolUnavailableError: the runner executable cannot be found
        """
        configured = self.suites
        names = list(suites) if suites else list(configured)
        unknown = [n for n in names if n not in configured]
        if unknown:
            raise InputError(f"Unknown test suite(s): {', '.join(unknown)}; "
                             f"configured: {', '.join(configured) or 'none'}")

        runner_cmd = self.tests_config.get('runner', ['python', '-m', 'pytest'])
        argv = self.runner.resolve_command(runner_cmd)
        if argv is None:
            raise ToolUnavailableError(str(runner_cmd[0] if isinstance(runner_cmd, list) else runner_cmd))

        results_dir = self.results_dir()
        results_dir.mkdir(parents=True, exist_ok=True)
        report = TestReport()
        self.last_result = report

        for name in names:
            suite_path = self.root / configured[name]
            if not suite_path.exists():
                yield f"Skipping {name}: {configured[name]} not found"
                continue

            junit_path = results_dir / f"{name}.xml"
            if junit_path.exists():
                junit_path.unlink()

            yield f"Running {name} tests ({configured[name]})"
            run = self.runner.run(
                argv + [str(suite_path), f"--junitxml={junit_path}"] + list(extra_args),
                cwd=str(self.root),
            )

            if junit_path.exists():
                suite = parse_junit(junit_path, name=name)
            else:
                suite = SuiteResult(name=name, errors=1,
                                    failed_cases=[f"runner exited with status {run.returncode}"])
                logger.error(f"{name}: no JUnit report written; {run.stderr.strip()}")
            suite.returncode = run.returncode
            report.add(suite)

            status = "passed" if suite.success else "FAILED"
            yield f"{name}: {suite.passed}/{suite.tests} passed, {status}"

        if not report.suites:
            raise InputError("No test suite directories found")
        return report

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def verify(self, paths: Optional[Iterable[str]] = None) -> TestReport:
        """
        Aggregate JUnit XML reports (default: the results directory).

        Raises:
            InputError: no reports found or a report cannot be parsed
        """
        reports = find_reports(paths or [str(self.results_dir())])
        if not reports:
            raise InputError("No JUnit XML reports found")

        report = TestReport()
        for path in reports:
            report.add(parse_junit(path))
        self.last_result = report
        return report

    @staticmethod
    def check(report: TestReport, min_tests: int = 0) -> List[str]:
        """Reasons the report does not pass; empty when it does."""
        problems = []
        for suite in report.suites:
            if suite.failures or suite.errors:
                problems.append(f"{suite.name}: {suite.failures} failure(s), {suite.errors} error(s)")
        if report.tests < min_tests:
            problems.append(f"Only {report.tests} test(s) ran; at least {min_tests} required")
        return problems

    # ------------------------------------------------------------------
    # Missing tests
    # ------------------------------------------------------------------

    def missing_tests(
        self,
        source_dir: Optional[str] = None,
        tests_dir: Optional[str] = None
    ) -> List[Dict[str, str]]:
        """
        Source modules with no ``test_<module>.py`` anywhere under the tests directory.

        Raises:
            InputError: if the source directory does not exist
        """
        source = self.root / (source_dir or self.tests_config.get('source_directory', 'src'))
        tests = self.root / (tests_dir or self.tests_config.get('tests_directory', 'tests'))
        if not source.is_dir():
            raise InputError(f"Source directory not found: {source}")

        existing = {p.name for p in tests.rglob('test_*.py')} if tests.is_dir() else set()
        tests_resolved = tests.resolve()

        missing = []
        for module in sorted(source.rglob('*.py')):
            if module.name in IGNORED_MODULES or module.name.startswith('test_'):
                continue
            if tests_resolved in module.resolve().parents:
                continue
            expected = f"test_{module.stem}.py"
            if expected not in existing:
                missing.append({
                    'module': os.path.relpath(module, self.root),
                    'expected_test': expected,
                })
        return missing
