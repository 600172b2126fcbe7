"""
profilekit - developer-experience tools.

profilekit bundles the glue a development profile needs: git hooks that
enforce conventional-commit subjects, a catalogue of format conversions
delegated to external tools, code metrics history, test-suite
verification and environment setup.

Quick Start:
    import profilekit

    # Validate a commit subject
    result = profilekit.validate_subject("feat(cli): add foo")
    assert result.accepted

    # Convert a file (skipped when yq is not installed)
    service = profilekit.ConversionService()
    outcome = service.convert("csv-to-json", "data.csv", "data.json")
    print(outcome.status)

    # Save a metrics snapshot
    snapshot, path = profilekit.MetricsService().snapshot()

Command line:
    profilekit hooks install
    profilekit commits check
    profilekit convert list --category data
    profilekit metrics dashboard
    profilekit tests verify .test-results
    profilekit setup --dry-run

Domain Objects:
    ValidationResult - Verdict on one commit subject
    Conversion - Catalogue entry delegating to one tool
    MetricsSnapshot - Code metrics at a point in time
    TestReport - Aggregated JUnit results

Services:
    HookService - commit-msg, pre-commit, pre-push, hook installation
    ConversionService - Conversions, batches, chains, round trips
    MetricsService - Collection, snapshots, trends, dashboard
    TestService - Suite runs, JUnit verification, missing tests
    SetupService - Tool checks and bootstrap
"""

__version__ = "0.3.0"

# Domain objects
from .domain import (
    Verdict,
    ValidationResult,
    validate_subject,
    extract_subject,
    Conversion,
    ConversionResult,
    OperationStatus,
    OperationSummary,
    CodeMetrics,
    MetricsSnapshot,
    SuiteResult,
    TestReport,
)

# Services
from .services import (
    HookService,
    ConversionService,
    MetricsService,
    TestService,
    SetupService,
)

# Catalogue
from .conversions import CATALOG, get_conversion, list_conversions

# Configuration
from .config import load_config, save_config

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "Verdict",
    "ValidationResult",
    "validate_subject",
    "extract_subject",
    "Conversion",
    "ConversionResult",
    "OperationStatus",
    "OperationSummary",
    "CodeMetrics",
    "MetricsSnapshot",
    "SuiteResult",
    "TestReport",
    # Services
    "HookService",
    "ConversionService",
    "MetricsService",
    "TestService",
    "SetupService",
    # Catalogue
    "CATALOG",
    "get_conversion",
    "list_conversions",
    # Configuration
    "load_config",
    "save_config",
]
