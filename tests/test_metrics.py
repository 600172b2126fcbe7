"""
Tests for metrics collection and snapshot history.
"""

import json
from datetime import datetime

import pytest

from profilekit.config import get_default_config
from profilekit.domain.metrics import CodeMetrics, MetricsSnapshot
from profilekit.exit_codes import InputError
from profilekit.services.metrics_service import (
    MetricsService,
    compute_deltas,
    count_lines,
    is_test_file,
    read_coverage_percent,
)

MODULE = """\
# header
import os

class A:
    def f(self):
        return 1

async def g():
    pass
"""


@pytest.fixture
def source_tree(tmp_path):
    root = tmp_path / "project"
    (root / "pkg").mkdir(parents=True)
    (root / "tests").mkdir()
    (root / ".git").mkdir()
    (root / "node_modules" / "dep").mkdir(parents=True)
    (root / "pkg" / "mod.py").write_text(MODULE)
    (root / "tests" / "test_mod.py").write_text("def test_x():\n    assert True\n")
    (root / "run.sh").write_text("#!/bin/sh\necho hi\n")
    (root / "README.md").write_text("# not counted\n")
    (root / ".git" / "hook.py").write_text("x = 1\n")
    (root / "node_modules" / "dep" / "index.js").write_text("module.exports = 1;\n")
    return root


@pytest.fixture
def service(source_tree, tmp_path):
    return MetricsService(config=get_default_config(), root=str(source_tree),
                          metrics_dir=str(tmp_path / "metrics"))


def at(day, hour=12):
    return datetime(2026, 1, day, hour, 0, 0)


class TestCounting:

    def test_count_lines(self):
        counts = count_lines("x = 1\n\n# comment\n   # indented\n", ("#",))
        assert (counts.lines, counts.code_lines, counts.blank_lines, counts.comment_lines) == (4, 1, 1, 2)

    def test_count_lines_without_comment_syntax(self):
        counts = count_lines('{"a": 1}\n# not a comment\n', ())
        assert counts.code_lines == 2

    def test_is_test_file(self, tmp_path):
        assert is_test_file(tmp_path / "test_cli.py")
        assert is_test_file(tmp_path / "cli_test.py")
        assert is_test_file(tmp_path / "Module.Tests.ps1")
        assert not is_test_file(tmp_path / "testing.py")

    def test_read_coverage_percent(self, tmp_path):
        report = tmp_path / "coverage.xml"
        report.write_text('<?xml version="1.0" ?>\n<coverage line-rate="0.8567" branch-rate="0"></coverage>\n')
        assert read_coverage_percent(report) == 85.67

    def test_read_coverage_missing_or_invalid(self, tmp_path):
        assert read_coverage_percent(tmp_path / "none.xml") is None
        broken = tmp_path / "broken.xml"
        broken.write_text("<coverage")
        assert read_coverage_percent(broken) is None
        no_rate = tmp_path / "norate.xml"
        no_rate.write_text("<coverage/>")
        assert read_coverage_percent(no_rate) is None


class TestCollect:

    def test_collect_tree(self, service):
        metrics = service.collect()
        assert metrics.files == 3
        assert metrics.lines == 13
        assert metrics.code_lines == 9
        assert metrics.comment_lines == 2
        assert metrics.blank_lines == 2
        assert metrics.functions == 3
        assert metrics.classes == 1
        assert metrics.test_files == 1
        assert metrics.coverage_percent is None
        assert set(metrics.languages) == {"python", "shell"}
        assert metrics.languages["python"].files == 2

    def test_collect_reads_coverage(self, service, source_tree):
        (source_tree / "coverage.xml").write_text('<coverage line-rate="0.5"/>')
        assert service.collect().coverage_percent == 50.0

    def test_missing_source_directory(self, source_tree, tmp_path):
        config = get_default_config()
        config['metrics']['source_directories'] = ["src", "pkg"]
        metrics = MetricsService(config=config, root=str(source_tree), metrics_dir=str(tmp_path / "m")).collect()
        assert metrics.files == 1


class TestSnapshots:

    def test_snapshot_writes_json(self, service):
        snapshot, path = service.snapshot(CodeMetrics(files=2, lines=10), timestamp=at(1))
        assert path.name == "metrics-20260101T120000.json"
        data = json.loads(path.read_text())
        assert data['timestamp'] == "2026-01-01T12:00:00"
        assert data['metrics']['files'] == 2
        assert snapshot.source == str(path)

    def test_snapshot_name_collision(self, service):
        _, first = service.snapshot(CodeMetrics(), timestamp=at(1))
        _, second = service.snapshot(CodeMetrics(), timestamp=at(1))
        assert first != second
        assert second.name == "metrics-20260101T120000-1.json"
        assert len(service.load_snapshots()) == 2

    def test_snapshot_collects_when_no_metrics_given(self, service):
        snapshot, _ = service.snapshot(timestamp=at(2))
        assert snapshot.metrics.files == 3

    def test_history_limit(self, service):
        service.metrics_config['history_limit'] = 2
        for day in (1, 2, 3):
            service.snapshot(CodeMetrics(files=day), timestamp=at(day))
        remaining = service.load_snapshots()
        assert [s.metrics.files for s in remaining] == [2, 3]

    def test_zero_limit_keeps_everything(self, service):
        service.metrics_config['history_limit'] = 0
        for day in (1, 2, 3):
            service.snapshot(CodeMetrics(), timestamp=at(day))
        assert len(service.load_snapshots()) == 3

    def test_malformed_snapshots_are_skipped(self, service):
        service.snapshot(CodeMetrics(files=1), timestamp=at(1))
        (service.metrics_dir / "metrics-broken.json").write_text("{")
        (service.metrics_dir / "metrics-list.json").write_text("[1, 2]")
        (service.metrics_dir / "metrics-notime.json").write_text('{"metrics": {}}')
        (service.metrics_dir / "metrics-badtime.json").write_text('{"timestamp": "yesterday"}')
        assert len(service.load_snapshots()) == 1

    def test_load_without_directory(self, tmp_path):
        service = MetricsService(config=get_default_config(), root=str(tmp_path),
                                 metrics_dir=str(tmp_path / "none"))
        assert service.load_snapshots() == []


class TestTrends:

    def populate(self, service):
        service.snapshot(CodeMetrics(files=10, lines=100, coverage_percent=50.0), timestamp=at(1))
        service.snapshot(CodeMetrics(files=12, lines=130, coverage_percent=60.5), timestamp=at(2))
        service.snapshot(CodeMetrics(files=11, lines=120), timestamp=at(3))

    def test_trends(self, service):
        self.populate(service)
        trends = service.trends()
        assert trends['snapshots'] == 3
        assert [row['coverage_change'] for row in trends['series']] == [None, 10.5, None]
        assert trends['deltas']['files'] == -1
        assert trends['deltas']['lines'] == -10
        assert trends['deltas']['coverage_percent'] is None

    def test_trends_limit(self, service):
        self.populate(service)
        trends = service.trends(limit=2)
        assert [row['timestamp'] for row in trends['series']] == ["2026-01-02T12:00:00", "2026-01-03T12:00:00"]

    def test_trends_single_snapshot(self, service):
        service.snapshot(CodeMetrics(), timestamp=at(1))
        assert service.trends()['deltas'] is None

    def test_compute_deltas(self):
        deltas = compute_deltas(CodeMetrics(functions=5, coverage_percent=70.25),
                                CodeMetrics(functions=3, coverage_percent=70.0))
        assert deltas['functions'] == 2
        assert deltas['coverage_percent'] == 0.25


class TestDashboard:

    def test_live_when_no_history(self, service):
        data = service.dashboard()
        assert data['live'] is True
        assert data['latest']['metrics']['files'] == 3
        assert data['previous'] is None
        assert data['deltas'] is None
        assert len(data['history']) == 1
        assert not service.metrics_dir.exists()

    def test_from_history(self, service):
        for day in range(1, 6):
            service.snapshot(CodeMetrics(files=day), timestamp=at(day))
        data = service.dashboard(history=3)
        assert data['live'] is False
        assert data['latest']['metrics']['files'] == 5
        assert data['previous']['metrics']['files'] == 4
        assert data['deltas']['files'] == 1
        assert [row['files'] for row in data['history']] == [3, 4, 5]


class TestExport:

    def test_csv(self, service):
        service.snapshot(CodeMetrics(files=1, lines=2), timestamp=at(1))
        service.snapshot(CodeMetrics(files=3, lines=4), timestamp=at(2))
        text = "".join(service.export("csv"))
        lines = text.splitlines()
        assert lines[0].startswith("timestamp,files,lines,code_lines")
        assert lines[1].startswith("2026-01-01T12:00:00,1,2,")
        assert len(lines) == 3

    def test_json(self, service):
        service.snapshot(CodeMetrics(files=1), timestamp=at(1))
        rows = json.loads("".join(service.export("json")))
        assert rows[0]['files'] == 1
        assert 'languages' not in rows[0]

    def test_unknown_format(self, service):
        with pytest.raises(InputError):
            list(service.export("xml"))


def test_snapshot_from_dict_roundtrip():
    snapshot = MetricsSnapshot(timestamp=at(4), metrics=CodeMetrics(files=2, coverage_percent=12.5))
    restored = MetricsSnapshot.from_dict(snapshot.to_dict())
    assert restored.timestamp == snapshot.timestamp
    assert restored.metrics.coverage_percent == 12.5
