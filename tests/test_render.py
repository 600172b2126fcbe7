"""
Tests for profilekit/render.py rendering functions.

These tests verify that render functions:
1. Handle empty data gracefully
2. Show the values callers care about
3. Run without errors for valid data
"""
from datetime import datetime

from profilekit import render
from profilekit.conversions import list_conversions
from profilekit.domain.commit import validate_subject
from profilekit.domain.metrics import CodeMetrics, LanguageMetrics, MetricsSnapshot
from profilekit.domain.operation import OperationDetail, OperationStatus, OperationSummary
from profilekit.domain.reports import SuiteResult, TestReport
from profilekit.infra.git_client import GitCommit
from profilekit.services.conversion_service import ToolAvailability
from profilekit.services.setup_service import ToolCheck


def commit(short, subject):
    return GitCommit(hash=short * 5, short_hash=short, author="Ada", subject=subject)


class TestRenderTable:

    def test_empty_rows_shows_message(self, capsys):
        render.render_table(["Col1", "Col2"], [])
        assert "No data to display" in capsys.readouterr().out

    def test_rows(self, capsys):
        render.render_table(["Name", "Value"], [["alpha", 1], ["beta", 2]], title="Things")
        out = capsys.readouterr().out
        assert "alpha" in out and "beta" in out
        assert "Things" in out


class TestRenderCommitCheck:

    def test_empty(self, capsys):
        render.render_commit_check([])
        assert "No commits to check" in capsys.readouterr().out

    def test_mixed_verdicts(self, capsys):
        results = [
            (commit("abc1234", "feat: ok"), validate_subject("feat: ok")),
            (commit("def5678", "bad"), validate_subject("bad")),
        ]
        render.render_commit_check(results)
        out = capsys.readouterr().out
        assert "ACCEPT" in out and "REJECT" in out
        assert "1 of 2 commit message(s) rejected" in out

    def test_all_accepted(self, capsys):
        render.render_commit_check([(commit("abc1234", "fix: y"), validate_subject("fix: y"))])
        assert "All 1 commit message(s) accepted" in capsys.readouterr().out


class TestRenderConversions:

    def test_empty(self, capsys):
        render.render_conversions([])
        assert "No conversions match" in capsys.readouterr().out

    def test_lists_entries(self, capsys):
        render.render_conversions(list_conversions(category="encoding"))
        out = capsys.readouterr().out
        assert "text-to-base64" in out
        assert "iconv" in out

    def test_tool_status(self, capsys):
        render.render_tool_status([
            ToolAvailability(id="yq", executable="yq", available=True, path="/usr/bin/yq", conversions=30),
            ToolAvailability(id="ffmpeg", executable="ffmpeg", available=False, conversions=42),
        ])
        out = capsys.readouterr().out
        assert "yes" in out and "no" in out
        assert "42" in out


class TestRenderSummary:

    def test_counts(self, capsys):
        summary = OperationSummary(operation="pre_commit")
        summary.add_detail(OperationDetail("format", OperationStatus.SUCCESS, "formatted"))
        summary.add_detail(OperationDetail("validate: ruff", OperationStatus.FAILED, "failed", error="E501"))
        summary.add_detail(OperationDetail("validate: mypy", OperationStatus.SKIPPED, "skipped",
                                           message="mypy not found"))
        render.render_summary(summary, title="pre-commit")
        out = capsys.readouterr().out
        assert "E501" in out
        assert "mypy not found" in out
        assert "1 succeeded, 1 skipped, 1 failed" in out

    def test_dry_run_prefix(self, capsys):
        summary = OperationSummary(operation="install_hooks", dry_run=True)
        summary.add_detail(OperationDetail("commit-msg", OperationStatus.DRY_RUN, "would_install",
                                           metadata={'path': '/repo/.git/hooks/commit-msg'}))
        render.render_summary(summary)
        out = capsys.readouterr().out
        assert "[dry run]" in out
        assert "would_install" in out

    def test_tool_checks(self, capsys):
        render.render_tool_checks([
            ToolCheck("git", required=True, path="/usr/bin/git", version="2.43.0", min_version="2.9"),
            ToolCheck("ffmpeg", status="missing"),
        ])
        out = capsys.readouterr().out
        assert "2.43.0" in out
        assert "missing" in out


class TestRenderMetrics:

    def metrics(self):
        metrics = CodeMetrics(functions=4, classes=1, test_files=2, coverage_percent=81.5)
        metrics.add_file("python", LanguageMetrics(files=3, lines=120, code_lines=100,
                                                   comment_lines=5, blank_lines=15))
        return metrics

    def test_metrics(self, capsys):
        render.render_metrics(self.metrics().to_dict())
        out = capsys.readouterr().out
        assert "python" in out
        assert "120" in out
        assert "Coverage: 81.50%" in out

    def test_metrics_without_coverage(self, capsys):
        render.render_metrics(CodeMetrics().to_dict())
        assert "Coverage: n/a" in capsys.readouterr().out

    def test_trends_empty(self, capsys):
        render.render_trends({'series': []})
        assert "No metrics snapshots yet" in capsys.readouterr().out

    def test_dashboard(self, capsys):
        latest = MetricsSnapshot(datetime(2026, 1, 2), self.metrics())
        previous = MetricsSnapshot(datetime(2026, 1, 1), CodeMetrics(coverage_percent=80.0))
        render.render_dashboard({
            'live': False,
            'latest': latest.to_dict(),
            'previous': previous.to_dict(),
            'deltas': {'files': 3, 'coverage_percent': 1.5, 'classes': 0},
            'history': [previous.to_row(), latest.to_row()],
        })
        out = capsys.readouterr().out
        assert "2026-01-02T00:00:00" in out
        assert "+1.50" in out
        assert "Metrics Trends" in out


class TestRenderTestReport:

    def test_empty(self, capsys):
        render.render_test_report(TestReport())
        assert "No test suites ran" in capsys.readouterr().out

    def test_failures(self, capsys):
        report = TestReport([
            SuiteResult("unit", tests=10, skipped=1),
            SuiteResult("integration", tests=3, failures=1, failed_cases=["tests.test_db::test_write"]),
        ])
        render.render_test_report(report)
        out = capsys.readouterr().out
        assert "integration: tests.test_db::test_write" in out
        assert "1 failed, 0 errors" in out

    def test_success(self, capsys):
        render.render_test_report(TestReport([SuiteResult("unit", tests=4)]))
        assert "4 passed" in capsys.readouterr().out

    def test_missing_tests(self, capsys):
        render.render_missing_tests([])
        assert "Every module has a test file" in capsys.readouterr().out
        render.render_missing_tests([{'module': 'src/a.py', 'expected_test': 'test_a.py'}])
        assert "test_a.py" in capsys.readouterr().out
