"""
Service layer for profilekit.

Contains the logic that orchestrates domain objects and infrastructure:
- HookService: commit-msg, pre-commit and pre-push hooks, hook installation
- ConversionService: catalogue conversions, batches, chains, round trips
- MetricsService: metrics collection, snapshots, trends, dashboard data
- TestService: running suites, verifying JUnit reports, missing tests
- SetupService: tool checks and environment bootstrap

Services are the primary API for commands to use.
"""

from .hook_service import HookService
from .conversion_service import ConversionService
from .metrics_service import MetricsService
from .test_service import TestService
from .setup_service import SetupService

__all__ = [
    'HookService',
    'ConversionService',
    'MetricsService',
    'TestService',
    'SetupService',
]
