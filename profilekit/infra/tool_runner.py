"""
External tool execution for profilekit.

Every third-party binary (ffmpeg, sqlite3, yq, iconv, formatters, test
runners) is located and run through ToolRunner, so that availability
checks, timeouts and output capture behave the same everywhere and tests
can swap in a fake.
"""

import logging
import re
import shlex
import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

from ..domain.conversion import ToolSpec

logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r"(\d+(?:\.\d+)+)")


@dataclass
class ToolRun:
    """Outcome of one external process."""
    command: Sequence[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out


class ToolRunner:
    """
    Locates and runs external tools.

    Example:
        runner = ToolRunner(overrides={"ffmpeg": "/opt/ffmpeg/bin/ffmpeg"})
        exe = runner.which("ffmpeg")
        if exe:
            runner.run([exe, "-version"])
    """

    def __init__(self, overrides: Optional[Mapping[str, str]] = None, timeout: int = 300):
        """
        Initialize ToolRunner.

        Args:
            overrides: tool id -> executable path/name taking precedence over PATH
            timeout: Default process timeout in seconds
        """
        self.overrides: Dict[str, str] = dict(overrides or {})
        self.timeout = timeout
        self._probe_cache: Dict[str, bool] = {}

    def which(self, name: str) -> Optional[str]:
        """Resolve a tool id or executable name to a runnable path."""
        candidate = self.overrides.get(name, name)
        found = shutil.which(candidate)
        if found:
            return found
        path = Path(candidate).expanduser()
        if path.is_file():
            return str(path)
        return None

    def resolve_command(self, command: Union[str, Sequence[str]]) -> Optional[List[str]]:
        """
        Turn a configured command (string or list) into a runnable argv.

        ``python``/``python3`` map to the running interpreter.

        Returns:
            argv with an absolute executable, or None if it cannot be found
        """
        argv = shlex.split(command) if isinstance(command, str) else [str(part) for part in command]
        if not argv:
            return None
        if argv[0] in ("python", "python3") and argv[0] not in self.overrides:
            return [sys.executable] + argv[1:]
        executable = self.which(argv[0])
        if not executable:
            return None
        return [executable] + argv[1:]

    def resolve(self, tool: ToolSpec) -> Optional[str]:
        """Executable for a ToolSpec, honouring overrides keyed by id or executable."""
        if tool.id in self.overrides:
            return self.which(tool.id)
        return self.which(tool.executable)

    def is_available(self, tool: ToolSpec) -> bool:
        """
        True when the tool's executable exists and its probe (if any) passes.

        Probe results are cached per tool id for the life of the runner.
        """
        executable = self.resolve(tool)
        if not executable:
            return False
        if not tool.probe:
            return True
        if tool.id not in self._probe_cache:
            result = self.run([executable] + list(tool.probe), timeout=30)
            self._probe_cache[tool.id] = result.ok
            if not result.ok:
                logger.debug(f"Probe for {tool.id} failed: {result.stderr.strip()}")
        return self._probe_cache[tool.id]

    def version(self, executable: str, args: Sequence[str] = ("--version",)) -> Optional[str]:
        """
        Version number reported by ``<executable> --version``.

        Returns:
            The first dotted number in the output, or None
        """
        result = self.run([executable] + list(args), timeout=30)
        if result.returncode != 0:
            return None
        match = VERSION_PATTERN.search(result.stdout or result.stderr)
        return match.group(1) if match else None

    def run(
        self,
        command: Sequence[str],
        cwd: Optional[str] = None,
        timeout: Optional[int] = None,
        stdout_path: Optional[Path] = None,
        stdin_text: Optional[str] = None,
    ) -> ToolRun:
        """
        Run an external command to completion.

        Args:
            command: Full argv, executable first
            cwd: Working directory
            timeout: Seconds before the process is killed (default: runner timeout)
            stdout_path: Write the raw stdout bytes to this file instead of capturing
            stdin_text: Text fed to the process on stdin

        Returns:
            ToolRun; a missing executable yields returncode 127, a timeout -1
        """
        timeout = timeout or self.timeout
        cmd = [str(part) for part in command]
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            if stdout_path is not None:
                with open(stdout_path, 'wb') as out:
                    result = subprocess.run(
                        cmd,
                        cwd=cwd,
                        stdout=out,
                        stderr=subprocess.PIPE,
                        input=stdin_text.encode('utf-8') if stdin_text is not None else None,
                        timeout=timeout,
                        check=False,
                    )
                return ToolRun(
                    command=cmd,
                    returncode=result.returncode,
                    stderr=result.stderr.decode('utf-8', errors='replace'),
                )

            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                encoding='utf-8',
                errors='replace',
                input=stdin_text,
                timeout=timeout,
                check=False,
            )
            return ToolRun(
                command=cmd,
                returncode=result.returncode,
                stdout=result.stdout or "",
                stderr=result.stderr or "",
            )
        except subprocess.TimeoutExpired:
            logger.error(f"{cmd[0]} timed out after {timeout} seconds")
            return ToolRun(command=cmd, returncode=-1, stderr=f"timed out after {timeout}s", timed_out=True)
        except FileNotFoundError:
            logger.error(f"{cmd[0]} not found in PATH")
            return ToolRun(command=cmd, returncode=127, stderr=f"{cmd[0]}: command not found")
        except OSError as e:
            logger.error(f"{cmd[0]} execution failed: {e}")
            return ToolRun(command=cmd, returncode=126, stderr=str(e))
