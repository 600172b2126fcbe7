"""
Code metrics domain objects for profilekit.

A MetricsSnapshot is one point in the metrics history: code size counts,
per-language breakdown and test coverage, stamped with the time it was
taken. Snapshots serialize to flat-ish JSON documents on disk.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, Optional

SNAPSHOT_TIME_FORMAT = "%Y%m%dT%H%M%S"


@dataclass
class LanguageMetrics:
    """Line and file counts for a single language."""
    files: int = 0
    lines: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    blank_lines: int = 0

    def add(self, other: 'LanguageMetrics') -> None:
        self.files += other.files
        self.lines += other.lines
        self.code_lines += other.code_lines
        self.comment_lines += other.comment_lines
        self.blank_lines += other.blank_lines

    def to_dict(self) -> Dict[str, int]:
        return {
            'files': self.files,
            'lines': self.lines,
            'code_lines': self.code_lines,
            'comment_lines': self.comment_lines,
            'blank_lines': self.blank_lines,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LanguageMetrics':
        return cls(**{k: int(data.get(k, 0)) for k in cls().to_dict()})


@dataclass
class CodeMetrics:
    """Aggregated code metrics for a set of source directories."""
    files: int = 0
    lines: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    blank_lines: int = 0
    functions: int = 0
    classes: int = 0
    test_files: int = 0
    coverage_percent: Optional[float] = None
    languages: Dict[str, LanguageMetrics] = field(default_factory=dict)

    def add_file(self, language: str, counts: LanguageMetrics) -> None:
        self.files += counts.files
        self.lines += counts.lines
        self.code_lines += counts.code_lines
        self.comment_lines += counts.comment_lines
        self.blank_lines += counts.blank_lines
        self.languages.setdefault(language, LanguageMetrics()).add(counts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'files': self.files,
            'lines': self.lines,
            'code_lines': self.code_lines,
            'comment_lines': self.comment_lines,
            'blank_lines': self.blank_lines,
            'functions': self.functions,
            'classes': self.classes,
            'test_files': self.test_files,
            'coverage_percent': self.coverage_percent,
            'languages': {name: lang.to_dict() for name, lang in sorted(self.languages.items())},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CodeMetrics':
        coverage = data.get('coverage_percent')
        return cls(
            files=int(data.get('files', 0)),
            lines=int(data.get('lines', 0)),
            code_lines=int(data.get('code_lines', 0)),
            comment_lines=int(data.get('comment_lines', 0)),
            blank_lines=int(data.get('blank_lines', 0)),
            functions=int(data.get('functions', 0)),
            classes=int(data.get('classes', 0)),
            test_files=int(data.get('test_files', 0)),
            coverage_percent=float(coverage) if coverage is not None else None,
            languages={
                name: LanguageMetrics.from_dict(lang)
                for name, lang in (data.get('languages') or {}).items()
            },
        )


@dataclass
class MetricsSnapshot:
    """Code metrics captured at a point in time."""
    timestamp: datetime
    metrics: CodeMetrics
    source: Optional[str] = None  # file the snapshot was loaded from

    @property
    def snapshot_id(self) -> str:
        return self.timestamp.strftime(SNAPSHOT_TIME_FORMAT)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp.isoformat(timespec='seconds'),
            'metrics': self.metrics.to_dict(),
        }

    def to_row(self) -> Dict[str, Any]:
        """Single-level record used for exports and trend tables."""
        row = {'timestamp': self.timestamp.isoformat(timespec='seconds')}
        row.update({k: v for k, v in self.metrics.to_dict().items() if k != 'languages'})
        return row

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: Optional[str] = None) -> 'MetricsSnapshot':
        """Build a snapshot from its JSON form.

        Raises:
            ValueError: if the timestamp is missing or malformed
        """
        if 'timestamp' not in data:
            raise ValueError("snapshot has no timestamp")
        return cls(
            timestamp=datetime.fromisoformat(data['timestamp']),
            metrics=CodeMetrics.from_dict(data.get('metrics') or {}),
            source=source,
        )
