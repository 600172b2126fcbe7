"""
Infrastructure layer for profilekit.

Contains abstractions for external systems:
- GitClient: Git command execution
- ToolRunner: Locating and running third-party binaries

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, GitCommit, NULL_SHA
from .tool_runner import ToolRunner, ToolRun

__all__ = [
    'GitClient',
    'GitCommit',
    'NULL_SHA',
    'ToolRunner',
    'ToolRun',
]
