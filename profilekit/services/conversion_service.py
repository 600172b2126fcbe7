"""
Conversion service for profilekit.

Runs catalogue conversions through external tools. The wrapper logic is
deliberately thin: check the input, check the tool, build the argv, run
it, and map the exit status to a ConversionResult.
"""

import filecmp
import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Generator, Iterable, List, Mapping, Optional

from ..config import load_config
from ..conversions import (
    TOOLS,
    extension_for_format,
    find_conversion,
    format_for_path,
    get_conversion,
)
from ..domain.conversion import Conversion
from ..domain.operation import ConversionResult, OperationStatus, OperationSummary
from ..exit_codes import InputError, ToolFailedError, ToolUnavailableError
from ..infra.tool_runner import ToolRunner

logger = logging.getLogger(__name__)


@dataclass
class RoundTripResult:
    """Outcome of converting a file away and back again."""
    input_path: str
    formats: List[str]
    identical: Optional[bool] = None  # None when the chain did not complete
    summary: Optional[OperationSummary] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'type': 'round_trip',
            'input': self.input_path,
            'formats': list(self.formats),
            'identical': self.identical,
        }
        if self.summary:
            result['steps'] = [d.to_dict() for d in self.summary.details]
        return result


@dataclass
class ToolAvailability:
    """Whether a conversion tool can be used on this machine."""
    id: str
    executable: str
    available: bool
    path: Optional[str] = None
    conversions: int = 0
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tool': self.id,
            'executable': self.executable,
            'available': self.available,
            'path': self.path,
            'conversions': self.conversions,
            'description': self.description,
        }


class ConversionService:
    """
    Service for running format conversions.

    Example:
        service = ConversionService()
        result = service.convert("csv-to-json", "data.csv", "data.json")
        if result.status is OperationStatus.SKIPPED:
            print(result.message)  # "yq is not available"
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        runner: Optional[ToolRunner] = None
    ):
        """
        Initialize ConversionService.

        Args:
            config: Configuration dict (loads default if None)
            runner: ToolRunner instance (creates one from config if None)
        """
        self.config = config or load_config()
        conv_config = self.config.get('conversions', {})
        self.runner = runner or ToolRunner(
            overrides=conv_config.get('tools', {}),
            timeout=int(conv_config.get('timeout_seconds', 300)),
        )
        self.last_result: Optional[OperationSummary] = None

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def resolve(self, name: Optional[str] = None, input_path: Optional[str] = None,
                output_path: Optional[str] = None) -> Conversion:
        """
        Find the conversion by name, or infer it from the file extensions.

        Raises:
            InputError: unknown name, or extensions that map to no conversion
        """
        if name:
            try:
                return get_conversion(name)
            except KeyError:
                raise InputError(f"Unknown conversion: {name} (see 'profilekit convert list')") from None

        source = format_for_path(input_path) if input_path else None
        target = format_for_path(output_path) if output_path else None
        if not source or not target:
            raise InputError("Cannot infer the conversion from the file extensions; pass --name")
        conversion = find_conversion(source, target)
        if conversion is None:
            raise InputError(f"No conversion from {source} to {target}")
        return conversion

    def tool_status(self) -> List[ToolAvailability]:
        """Availability of every tool the catalogue uses."""
        from ..conversions import CATALOG

        counts: Dict[str, int] = {}
        for entry in CATALOG.values():
            counts[entry.tool.id] = counts.get(entry.tool.id, 0) + 1

        statuses = []
        for tool_id, tool in sorted(TOOLS.items()):
            path = self.runner.resolve(tool)
            statuses.append(ToolAvailability(
                id=tool_id,
                executable=tool.executable,
                available=self.runner.is_available(tool),
                path=path,
                conversions=counts.get(tool_id, 0),
                description=tool.description,
            ))
        return statuses

    # ------------------------------------------------------------------
    # Single conversion
    # ------------------------------------------------------------------

    def convert(
        self,
        name: Optional[str],
        input_path: str,
        output_path: str,
        options: Optional[Mapping[str, Any]] = None,
        dry_run: bool = False
    ) -> ConversionResult:
        """
        Run one conversion.

        A missing tool is not an error here: the result comes back with
        status SKIPPED so batch callers can carry on.

        Raises:
            InputError: unknown conversion, missing options, missing input
        """
        conversion = self.resolve(name, input_path, output_path)
        options = dict(options or {})

        missing = conversion.missing_options(options)
        if missing:
            raise InputError(f"{conversion.name} requires option(s): {', '.join(missing)}")

        source = Path(input_path)
        target = Path(output_path)
        if not source.is_file():
            raise InputError(f"Input file not found: {input_path}")
        if source.resolve() == target.resolve():
            raise InputError("Input and output must be different files")

        result = ConversionResult(
            name=conversion.name,
            status=OperationStatus.SUCCESS,
            action="converted",
            input_path=str(source),
            output_path=str(target),
            tool=conversion.tool.id,
        )

        executable = self.runner.resolve(conversion.tool)
        if not executable or not self.runner.is_available(conversion.tool):
            result.status = OperationStatus.SKIPPED
            result.action = "skipped"
            result.message = f"{conversion.tool.id} is not available"
            logger.warning(f"Skipping {conversion.name}: {result.message}")
            return result

        command = conversion.command(executable, str(source), str(target), options)
        if dry_run:
            result.status = OperationStatus.DRY_RUN
            result.action = "would_convert"
            result.metadata['command'] = command
            return result

        target.parent.mkdir(parents=True, exist_ok=True)
        keep_existing = conversion.updates_output and target.exists()
        if target.exists() and not keep_existing:
            target.unlink()

        logger.info(f"Converting {source} -> {target} ({conversion.name})")
        run = self.runner.run(command, stdout_path=target if conversion.writes_stdout else None)
        result.returncode = run.returncode

        if not run.ok or not target.exists():
            result.status = OperationStatus.FAILED
            result.action = "failed"
            result.error = (run.stderr or "").strip() or f"{conversion.tool.id} exited with status {run.returncode}"
            if target.exists() and not keep_existing:
                target.unlink()
            logger.error(f"{conversion.name} failed: {result.error}")

        return result

    def convert_or_raise(self, *args, **kwargs) -> ConversionResult:
        """Like convert(), but turn SKIPPED/FAILED into CommandErrors."""
        result = self.convert(*args, **kwargs)
        if result.status is OperationStatus.SKIPPED:
            raise ToolUnavailableError(result.tool or "", f"Cannot run {result.name}: {result.message}")
        if result.status is OperationStatus.FAILED:
            raise ToolFailedError(result.tool or result.name, result.returncode or -1, result.error or "")
        return result

    # ------------------------------------------------------------------
    # Batch / chain / round trip
    # ------------------------------------------------------------------

    def convert_batch(
        self,
        name: str,
        inputs: Iterable[str],
        output_dir: str,
        options: Optional[Mapping[str, Any]] = None,
        dry_run: bool = False
    ) -> Generator[str, None, OperationSummary]:
        """
        Convert many files with the same conversion into output_dir.

        Outputs are named after the input stem; an input whose output was
        already claimed by an earlier one fails instead of overwriting it.

        Yields:
            Progress messages

        Returns:
            OperationSummary; skipped items do not count as failures
        """
        conversion = self.resolve(name)
        summary = OperationSummary(operation="convert_batch", dry_run=dry_run)
        self.last_result = summary
        out_dir = Path(output_dir)
        claimed: Dict[Path, str] = {}

        for input_path in inputs:
            target = out_dir / (Path(input_path).stem + extension_for_format(conversion.target))
            yield f"{conversion.name}: {input_path}"
            try:
                if target in claimed:
                    raise InputError(f"{target} is already the output for {claimed[target]}")
                claimed[target] = str(input_path)
                result = self.convert(conversion.name, input_path, str(target), options, dry_run=dry_run)
            except InputError as e:
                result = ConversionResult(
                    name=conversion.name,
                    status=OperationStatus.FAILED,
                    action="failed",
                    error=str(e),
                    input_path=str(input_path),
                    output_path=str(target),
                    tool=conversion.tool.id,
                )
            summary.add_detail(result)

        return summary

    def chain(
        self,
        input_path: str,
        formats: List[str],
        output_path: str,
        options: Optional[Mapping[str, Any]] = None
    ) -> Generator[str, None, OperationSummary]:
        """
        Run successive conversions ``formats[0] -> formats[1] -> ...``.

        Intermediate files live in a temporary directory; the chain stops
        at the first step that does not succeed.

        Raises:
            InputError: fewer than two formats or an unsupported step
        """
        if len(formats) < 2:
            raise InputError("A conversion chain needs at least two formats")

        steps = []
        for source, target in zip(formats, formats[1:]):
            conversion = find_conversion(source, target)
            if conversion is None:
                raise InputError(f"No conversion from {source} to {target}")
            steps.append(conversion)

        summary = OperationSummary(operation="convert_chain")
        self.last_result = summary

        with tempfile.TemporaryDirectory(prefix="profilekit-chain-") as workdir:
            current = str(input_path)
            for index, conversion in enumerate(steps):
                last = index == len(steps) - 1
                target = output_path if last else str(
                    Path(workdir) / f"step{index + 1}{extension_for_format(conversion.target)}"
                )
                yield f"Step {index + 1}/{len(steps)}: {conversion.name}"
                result = self.convert(conversion.name, current, target, options)
                summary.add_detail(result)
                if result.status is not OperationStatus.SUCCESS:
                    break
                current = target

        return summary

    def round_trip(
        self,
        input_path: str,
        via: List[str],
        source_format: Optional[str] = None,
        options: Optional[Mapping[str, Any]] = None
    ) -> Generator[str, None, RoundTripResult]:
        """
        Convert a file through ``via`` and back, then compare bytes.

        Returns:
            RoundTripResult; ``identical`` is None when a step was skipped or failed
        """
        source = source_format or format_for_path(input_path)
        if not source:
            raise InputError(f"Cannot infer the format of {input_path}; pass --from")

        formats = [source] + list(via) + [source]
        result = RoundTripResult(input_path=str(input_path), formats=formats)

        with tempfile.TemporaryDirectory(prefix="profilekit-roundtrip-") as workdir:
            final = Path(workdir) / f"roundtrip{extension_for_format(source)}"
            summary = yield from self.chain(input_path, formats, str(final), options)
            result.summary = summary
            if summary.successful == len(formats) - 1:
                result.identical = filecmp.cmp(input_path, final, shallow=False)

        return result
