"""
Metrics service for profilekit.

Collects code metrics from the working tree, keeps a history of
timestamped snapshots on disk and derives trend and dashboard data
from that history.
"""

import json
import logging
import os
import re
import xml.etree.ElementTree as ET
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Iterator, List, Optional, Tuple

from ..config import load_config
from ..domain.metrics import CodeMetrics, LanguageMetrics, MetricsSnapshot
from ..exit_codes import InputError
from ..format_utils import format_output

logger = logging.getLogger(__name__)

SNAPSHOT_PREFIX = "metrics-"

# extension -> (language, line comment markers)
LANGUAGES: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    ".py": ("python", ("#",)),
    ".ps1": ("powershell", ("#",)),
    ".psm1": ("powershell", ("#",)),
    ".psd1": ("powershell", ("#",)),
    ".sh": ("shell", ("#",)),
    ".bash": ("shell", ("#",)),
    ".js": ("javascript", ("//",)),
    ".ts": ("typescript", ("//",)),
    ".toml": ("toml", ("#",)),
    ".yaml": ("yaml", ("#",)),
    ".yml": ("yaml", ("#",)),
    ".json": ("json", ()),
    ".md": ("markdown", ()),
}

PY_FUNCTION = re.compile(r"^\s*(?:async\s+)?def\s+\w+")
PY_CLASS = re.compile(r"^\s*class\s+\w+")

# Fields compared between consecutive snapshots
TREND_FIELDS = (
    'files', 'lines', 'code_lines', 'comment_lines', 'functions',
    'classes', 'test_files', 'coverage_percent',
)


def is_test_file(path: Path) -> bool:
    name = path.name.lower()
    return (
        name.startswith("test_")
        or path.stem.lower().endswith("_test")
        or ".tests." in name
    )


def count_lines(text: str, comment_markers: Tuple[str, ...]) -> LanguageMetrics:
    """Count total, code, comment and blank lines of one file."""
    counts = LanguageMetrics(files=1)
    for line in text.splitlines():
        counts.lines += 1
        stripped = line.strip()
        if not stripped:
            counts.blank_lines += 1
        elif comment_markers and stripped.startswith(comment_markers):
            counts.comment_lines += 1
        else:
            counts.code_lines += 1
    return counts


def read_coverage_percent(path: Path) -> Optional[float]:
    """
    Line coverage from a Cobertura XML report, as a percentage.

    Returns None when the file is missing or has no ``line-rate``.
    """
    if not path.is_file():
        return None
    try:
        root = ET.parse(path).getroot()
    except (ET.ParseError, OSError) as e:
        logger.warning(f"Cannot read coverage report {path}: {e}")
        return None
    rate = root.get('line-rate')
    if rate is None:
        return None
    try:
        return round(float(rate) * 100, 2)
    except ValueError:
        logger.warning(f"Invalid line-rate {rate!r} in {path}")
        return None


def compute_deltas(latest: CodeMetrics, previous: CodeMetrics) -> Dict[str, Any]:
    """Field-by-field difference ``latest - previous``."""
    new = latest.to_dict()
    old = previous.to_dict()
    deltas = {}
    for name in TREND_FIELDS:
        if new.get(name) is None or old.get(name) is None:
            deltas[name] = None
        else:
            deltas[name] = round(new[name] - old[name], 2)
    return deltas


class MetricsService:
    """
    Service for collecting and tracking code metrics.

    Example:
        service = MetricsService()
        snapshot, path = service.snapshot()
        print(service.dashboard()['deltas'])
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        root: Optional[str] = None,
        metrics_dir: Optional[str] = None
    ):
        """
        Initialize MetricsService.

        Args:
            config: Configuration dict (loads default if None)
            root: Directory source paths are relative to (default: cwd)
            metrics_dir: Snapshot directory (default from config)
        """
        self.config = config or load_config()
        self.metrics_config = self.config.get('metrics', {})
        self.root = Path(root or os.getcwd())
        directory = metrics_dir or self.metrics_config.get('directory', '~/.profilekit/metrics')
        self.metrics_dir = Path(directory).expanduser()

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------

    def iter_source_files(self) -> Iterator[Path]:
        """Files under the configured source directories with a tracked extension."""
        extensions = {e.lower() for e in self.metrics_config.get('include_extensions', LANGUAGES)}
        excluded = set(self.metrics_config.get('exclude_directories', []))
        seen = set()

        for directory in self.metrics_config.get('source_directories', ['.']):
            base = (self.root / directory).resolve()
            if not base.is_dir():
                logger.warning(f"Source directory not found: {base}")
                continue
            for dirpath, dirnames, filenames in os.walk(base):
                dirnames[:] = sorted(d for d in dirnames if d not in excluded)
                for filename in sorted(filenames):
                    path = Path(dirpath) / filename
                    if path.suffix.lower() in extensions and path not in seen:
                        seen.add(path)
                        yield path

    def collect(self) -> CodeMetrics:
        """Walk the source tree and compute current metrics."""
        metrics = CodeMetrics()

        for path in self.iter_source_files():
            language, markers = LANGUAGES.get(path.suffix.lower(), (path.suffix.lstrip('.').lower(), ()))
            try:
                text = path.read_text(encoding='utf-8', errors='replace')
            except OSError as e:
                logger.warning(f"Skipping unreadable file {path}: {e}")
                continue

            metrics.add_file(language, count_lines(text, markers))
            if is_test_file(path):
                metrics.test_files += 1
            if language == "python":
                for line in text.splitlines():
                    if PY_FUNCTION.match(line):
                        metrics.functions += 1
                    elif PY_CLASS.match(line):
                        metrics.classes += 1

        coverage_file = self.metrics_config.get('coverage_file')
        if coverage_file:
            metrics.coverage_percent = read_coverage_percent(self.root / coverage_file)

        logger.debug(f"Collected metrics for {metrics.files} files")
        return metrics

    # ------------------------------------------------------------------
    # Snapshot history
    # ------------------------------------------------------------------

    def snapshot(
        self,
        metrics: Optional[CodeMetrics] = None,
        timestamp: Optional[datetime] = None
    ) -> Tuple[MetricsSnapshot, Path]:
        """
        Save metrics as a timestamped JSON file and prune old history.

        Returns:
            (snapshot, path written)
        """
        snapshot = MetricsSnapshot(
            timestamp=(timestamp or datetime.now()).replace(microsecond=0),
            metrics=metrics or self.collect(),
        )
        self.metrics_dir.mkdir(parents=True, exist_ok=True)

        path = self.metrics_dir / f"{SNAPSHOT_PREFIX}{snapshot.snapshot_id}.json"
        counter = 1
        while path.exists():
            path = self.metrics_dir / f"{SNAPSHOT_PREFIX}{snapshot.snapshot_id}-{counter}.json"
            counter += 1

        with open(path, 'w', encoding='utf-8') as f:
            json.dump(snapshot.to_dict(), f, indent=2)
            f.write('\n')
        snapshot.source = str(path)
        logger.info(f"Metrics snapshot saved to {path}")

        self.prune()
        return snapshot, path

    def prune(self, limit: Optional[int] = None) -> List[Path]:
        """Delete the oldest snapshots beyond ``history_limit`` (0 keeps all)."""
        limit = int(self.metrics_config.get('history_limit', 30) if limit is None else limit)
        if limit <= 0:
            return []
        snapshots = self.load_snapshots()
        removed = []
        for old in snapshots[:max(len(snapshots) - limit, 0)]:
            path = Path(old.source)
            path.unlink()
            removed.append(path)
            logger.debug(f"Pruned old snapshot {path}")
        return removed

    def load_snapshots(self) -> List[MetricsSnapshot]:
        """
        Read every snapshot in the metrics directory, oldest first.

        Malformed files are skipped with a warning.
        """
        if not self.metrics_dir.is_dir():
            return []

        snapshots = []
        for path in sorted(self.metrics_dir.glob(f"{SNAPSHOT_PREFIX}*.json")):
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("not a JSON object")
                snapshots.append(MetricsSnapshot.from_dict(data, source=str(path)))
            except (OSError, ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping malformed snapshot {path}: {e}")

        snapshots.sort(key=lambda s: (s.timestamp, s.source or ""))
        return snapshots

    # ------------------------------------------------------------------
    # Derived data
    # ------------------------------------------------------------------

    def trends(self, limit: Optional[int] = None) -> Dict[str, Any]:
        """
        Coverage and size series over the snapshot history.

        Args:
            limit: Only the most recent N snapshots
        """
        snapshots = self.load_snapshots()
        if limit:
            snapshots = snapshots[-limit:]

        series = []
        previous = None
        for snap in snapshots:
            row = snap.to_row()
            if previous is not None:
                before = previous.metrics.coverage_percent
                after = snap.metrics.coverage_percent
                row['coverage_change'] = (
                    round(after - before, 2) if before is not None and after is not None else None
                )
            else:
                row['coverage_change'] = None
            series.append(row)
            previous = snap

        deltas = None
        if len(snapshots) >= 2:
            deltas = compute_deltas(snapshots[-1].metrics, snapshots[-2].metrics)

        return {
            'snapshots': len(snapshots),
            'series': series,
            'deltas': deltas,
        }

    def dashboard(self, history: int = 10) -> Dict[str, Any]:
        """
        Dashboard data: latest and previous snapshots, deltas and history rows.

        Without any saved snapshot the current tree is collected live
        (``live`` is True and nothing is written).
        """
        snapshots = self.load_snapshots()
        live = not snapshots
        if live:
            snapshots = [MetricsSnapshot(timestamp=datetime.now().replace(microsecond=0),
                                         metrics=self.collect())]

        latest = snapshots[-1]
        previous = snapshots[-2] if len(snapshots) >= 2 else None

        return {
            'generated': datetime.now().isoformat(timespec='seconds'),
            'live': live,
            'latest': latest.to_dict(),
            'previous': previous.to_dict() if previous else None,
            'deltas': compute_deltas(latest.metrics, previous.metrics) if previous else None,
            'history': [s.to_row() for s in snapshots[-history:]] if history else [],
        }

    def export(self, output_format: str = 'json') -> Iterator[str]:
        """
        Snapshot history as json, jsonl, csv, tsv or yaml text.

        Raises:
            InputError: unknown format
        """
        rows = [s.to_row() for s in self.load_snapshots()]
        try:
            yield from format_output(iter(rows), output_format)
        except ValueError as e:
            raise InputError(str(e)) from e
