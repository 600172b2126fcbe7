"""
Test verification commands for profilekit.
"""

import click

from ..cli_utils import (
    add_common_options,
    get_command_config,
    output_result,
    resolve_format,
    standard_command,
)
from ..exit_codes import ValidationFailedError
from ..render import render_missing_tests, render_test_report
from ..services.test_service import TestService


def _report_output(report, fmt: str, title: str):
    if fmt == 'table':
        render_test_report(report, title=title)
    else:
        output_result([s.to_dict() for s in report.suites] + [report.to_dict()], fmt)


@click.group("tests")
def tests_cmd():
    """Run test suites and verify their results."""
    pass


@tests_cmd.command("run")
@click.argument("suites", nargs=-1)
@click.option("--min-tests", type=int, default=0, help="Fail when fewer tests ran")
@click.option("--runner-arg", "runner_args", multiple=True, help="Extra argument for the test runner (repeatable)")
@add_common_options('verbose', 'format')
@standard_command()
def run_handler(suites, min_tests, runner_args, verbose, output_format, progress):
    """Run SUITES (default: all configured suites) one after another.

    Each suite writes a JUnit XML report to the results directory.

    Examples:

        profilekit tests run

        profilekit tests run unit --runner-arg=-x
    """
    service = TestService(config=get_command_config())
    report = progress.drain(service.run(list(suites) or None, extra_args=runner_args))

    _report_output(report, resolve_format(output_format), "Test Run")

    problems = service.check(report, min_tests=min_tests)
    if problems:
        raise ValidationFailedError("; ".join(problems), failures=report.failures + report.errors)


@tests_cmd.command("verify")
@click.argument("reports", nargs=-1, type=click.Path())
@click.option("--min-tests", type=int, default=0, help="Fail when the reports hold fewer tests")
@add_common_options('format')
@standard_command()
def verify_handler(reports, min_tests, output_format, progress):
    """Check JUnit XML REPORTS (files or directories; default: the results directory).

    Exits 1 on any failure or error, or when fewer than --min-tests ran.
    """
    service = TestService(config=get_command_config())
    report = service.verify(list(reports) or None)

    _report_output(report, resolve_format(output_format), "Test Verification")

    problems = service.check(report, min_tests=min_tests)
    if problems:
        raise ValidationFailedError("; ".join(problems), failures=report.failures + report.errors)


@tests_cmd.command("missing")
@click.option("--source", "source_dir", help="Source directory (default from config: src)")
@click.option("--tests", "tests_dir", help="Tests directory (default from config: tests)")
@click.option("--strict", is_flag=True, help="Exit 1 when any module has no test file")
@add_common_options('format')
@standard_command()
def missing_handler(source_dir, tests_dir, strict, output_format, progress):
    """List source modules without a test_<module>.py file."""
    missing = TestService(config=get_command_config()).missing_tests(source_dir, tests_dir)

    fmt = resolve_format(output_format)
    if fmt == 'table':
        render_missing_tests(missing)
    elif missing:
        output_result(missing, fmt)

    if strict and missing:
        raise ValidationFailedError(f"{len(missing)} module(s) have no tests", failures=len(missing))
