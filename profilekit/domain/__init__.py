"""
Domain layer for profilekit.

Contains pure domain objects with no I/O or side effects:
- ValidationResult / Verdict: conventional-commit subject classification
- Conversion / ToolSpec: catalogue entries for external format converters
- OperationDetail / OperationSummary: results of tool-backed operations
- MetricsSnapshot / CodeMetrics: points in the metrics history
- SuiteResult / TestReport: parsed JUnit test results
"""

from .commit import Verdict, ValidationResult, validate_subject, extract_subject
from .conversion import Conversion, ToolSpec, conversion_name, parse_conversion_name
from .operation import (
    OperationStatus,
    OperationDetail,
    OperationSummary,
    ConversionResult,
    CommandStepResult,
)
from .metrics import CodeMetrics, LanguageMetrics, MetricsSnapshot
from .reports import SuiteResult, TestReport

__all__ = [
    'Verdict',
    'ValidationResult',
    'validate_subject',
    'extract_subject',
    'Conversion',
    'ToolSpec',
    'conversion_name',
    'parse_conversion_name',
    'OperationStatus',
    'OperationDetail',
    'OperationSummary',
    'ConversionResult',
    'CommandStepResult',
    'CodeMetrics',
    'LanguageMetrics',
    'MetricsSnapshot',
    'SuiteResult',
    'TestReport',
]
