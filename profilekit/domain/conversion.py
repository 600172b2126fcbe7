"""
Conversion domain objects for profilekit.

A Conversion is a named ``<source>-to-<target>`` mapping delegated to one
external tool. It knows how to build the tool's argument list and nothing
else; running it is the job of the conversion service.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Any, List, Mapping, Optional, Tuple

# (input_path, output_path, options) -> argv after the executable
ArgBuilder = Callable[[str, str, Mapping[str, Any]], List[str]]


@dataclass(frozen=True)
class ToolSpec:
    """An external tool a conversion depends on.

    ``probe`` is an optional argument list run with the executable to prove
    the tool is usable beyond being on PATH (e.g. a Python module import).
    """
    id: str
    executable: str
    description: str = ""
    probe: Optional[Tuple[str, ...]] = None
    version_args: Tuple[str, ...] = ("--version",)


@dataclass(frozen=True)
class Conversion:
    """A single format conversion backed by an external tool."""
    source: str
    target: str
    category: str
    tool: ToolSpec
    build_args: ArgBuilder = field(compare=False, repr=False)
    writes_stdout: bool = False
    # the tool adds to an existing output (e.g. importing into a database)
    updates_output: bool = False
    required_options: Tuple[str, ...] = ()
    description: str = ""

    @property
    def name(self) -> str:
        return conversion_name(self.source, self.target)

    def command(self, executable: str, input_path: str, output_path: str,
                options: Optional[Mapping[str, Any]] = None) -> List[str]:
        """Full argv for this conversion."""
        return [executable] + self.build_args(input_path, output_path, options or {})

    def missing_options(self, options: Optional[Mapping[str, Any]]) -> List[str]:
        options = options or {}
        return [name for name in self.required_options if not options.get(name)]

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'name': self.name,
            'source': self.source,
            'target': self.target,
            'category': self.category,
            'tool': self.tool.id,
        }
        if self.required_options:
            result['options'] = list(self.required_options)
        if self.description:
            result['description'] = self.description
        return result


def conversion_name(source: str, target: str) -> str:
    return f"{source}-to-{target}"


def parse_conversion_name(name: str) -> Tuple[str, str]:
    """Split ``csv-to-json`` into ``('csv', 'json')``.

    Raises:
        ValueError: if the name does not have the ``X-to-Y`` shape
    """
    source, sep, target = name.partition('-to-')
    if not sep or not source or not target:
        raise ValueError(f"Conversion names look like 'source-to-target', got: {name!r}")
    return source, target
