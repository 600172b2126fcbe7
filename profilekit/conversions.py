"""
Catalogue of format conversions for profilekit.

Every entry is a named ``<source>-to-<target>`` conversion that delegates
to one external tool:

- audio:    ffmpeg, every ordered pair of the supported audio formats
- database: the sqlite3 shell (dump, restore, table export/import)
- dbase:    a Python interpreter with the ``dbfread`` package
- data:     mikefarah yq v4, every ordered pair of the serialization formats
- encoding: base64, iconv and xxd

The catalogue only builds argument lists; running them is the job of
``profilekit.services.conversion_service``.
"""

import sys
from typing import Any, Dict, List, Mapping, Optional

from .domain.conversion import Conversion, ToolSpec, conversion_name

# ============================================================================
# Tools
# ============================================================================

FFMPEG = ToolSpec("ffmpeg", "ffmpeg", "Audio/video transcoder", version_args=("-version",))
SQLITE3 = ToolSpec("sqlite3", "sqlite3", "SQLite command-line shell", version_args=("-version",))
YQ = ToolSpec("yq", "yq", "YAML/JSON/TOML/XML/CSV processor (mikefarah yq v4)")
DBFREAD = ToolSpec(
    "dbfread",
    sys.executable or "python3",
    "Python interpreter with the dbfread package",
    probe=("-c", "import dbfread"),
)
BASE64 = ToolSpec("base64", "base64", "Base64 encoder (coreutils)")
ICONV = ToolSpec("iconv", "iconv", "Character set converter")
XXD = ToolSpec("xxd", "xxd", "Hex dump utility", version_args=("-v",))

TOOLS: Dict[str, ToolSpec] = {t.id: t for t in (FFMPEG, SQLITE3, YQ, DBFREAD, BASE64, ICONV, XXD)}

# ============================================================================
# Audio (ffmpeg)
# ============================================================================

# format -> (muxer, codec arguments)
AUDIO_FORMATS: Dict[str, tuple] = {
    "wav": ("wav", ["-c:a", "pcm_s16le"]),
    "mp3": ("mp3", ["-c:a", "libmp3lame", "-q:a", "2"]),
    "flac": ("flac", ["-c:a", "flac"]),
    "ogg": ("ogg", ["-c:a", "libvorbis", "-q:a", "5"]),
    "opus": ("opus", ["-c:a", "libopus", "-b:a", "128k"]),
    "m4a": ("ipod", ["-c:a", "aac", "-b:a", "192k"]),
    "aiff": ("aiff", ["-c:a", "pcm_s16be"]),
}

AUDIO_OPTION_FLAGS = {
    "bitrate": "-b:a",
    "sample_rate": "-ar",
    "channels": "-ac",
}


def _audio_args(target: str):
    muxer, codec_args = AUDIO_FORMATS[target]

    def build(input_path: str, output_path: str, options: Mapping[str, Any]) -> List[str]:
        args = ["-hide_banner", "-loglevel", "error", "-y", "-i", input_path,
                "-vn", "-map_metadata", "0"]
        args.extend(codec_args)
        for option, flag in AUDIO_OPTION_FLAGS.items():
            if options.get(option):
                args.extend([flag, str(options[option])])
        args.extend(["-f", muxer, output_path])
        return args

    return build


# ============================================================================
# Database (sqlite3 shell)
# ============================================================================

def quote_identifier(name: str) -> str:
    """Quote an SQL identifier for SQLite."""
    return '"' + str(name).replace('"', '""') + '"'


def quote_dot_argument(value: str) -> str:
    """Quote an argument of a sqlite3 shell dot-command."""
    return '"' + str(value).replace('\\', '\\\\').replace('"', '\\"') + '"'


def _sqlite_dump(input_path, output_path, options):
    return [input_path, ".dump"]


def _sqlite_restore(input_path, output_path, options):
    return [output_path, f".read {quote_dot_argument(input_path)}"]


def _sqlite_table_export(mode: str):
    def build(input_path, output_path, options):
        query = f"SELECT * FROM {quote_identifier(options['table'])};"
        flags = ["-header", "-csv"] if mode == "csv" else ["-json"]
        return flags + [input_path, query]
    return build


def _sqlite_csv_import(input_path, output_path, options):
    return ["-csv", output_path,
            f".import {quote_dot_argument(input_path)} {quote_dot_argument(options['table'])}"]


# ============================================================================
# dBASE (python + dbfread)
# ============================================================================

DBF_READER_SCRIPT = """\
import csv, json, sys
from dbfread import DBF

source, target, fmt, encoding = sys.argv[1:5]
table = DBF(source, encoding=encoding or None, char_decode_errors="strict")
if fmt == "csv":
    with open(target, "w", newline="", encoding="utf-8") as out:
        writer = csv.writer(out)
        writer.writerow(table.field_names)
        for record in table:
            writer.writerow([record[name] for name in table.field_names])
else:
    with open(target, "w", encoding="utf-8") as out:
        json.dump([dict(record) for record in table], out, ensure_ascii=False, indent=2, default=str)
        out.write("\\n")
"""


def _dbf_args(fmt: str):
    def build(input_path, output_path, options):
        return ["-c", DBF_READER_SCRIPT, input_path, output_path, fmt, str(options.get("encoding") or "")]
    return build


# ============================================================================
# Data serialization (yq)
# ============================================================================

DATA_FORMATS = ("yaml", "json", "toml", "csv", "tsv", "xml")


def _yq_args(source: str, target: str):
    def build(input_path, output_path, options):
        return [f"--input-format={source}", f"--output-format={target}", ".", input_path]
    return build


# ============================================================================
# Encodings (base64, iconv, xxd)
# ============================================================================

def _static(*args: str):
    def build(input_path, output_path, options):
        return list(args) + [input_path]
    return build


# ============================================================================
# Catalogue
# ============================================================================

def build_catalog() -> Dict[str, Conversion]:
    """Build the full conversion catalogue keyed by conversion name."""
    entries: List[Conversion] = []

    for source in AUDIO_FORMATS:
        for target in AUDIO_FORMATS:
            if source != target:
                entries.append(Conversion(
                    source, target, "audio", FFMPEG, _audio_args(target),
                    description=f"Transcode {source.upper()} audio to {target.upper()}",
                ))

    entries.extend([
        Conversion("sqlite", "sql", "database", SQLITE3, _sqlite_dump, writes_stdout=True,
                   description="Dump an SQLite database as SQL statements"),
        Conversion("sql", "sqlite", "database", SQLITE3, _sqlite_restore,
                   description="Restore an SQL dump into a new SQLite database"),
        Conversion("sqlite", "csv", "database", SQLITE3, _sqlite_table_export("csv"),
                   writes_stdout=True, required_options=("table",),
                   description="Export one SQLite table as CSV with a header row"),
        Conversion("sqlite", "json", "database", SQLITE3, _sqlite_table_export("json"),
                   writes_stdout=True, required_options=("table",),
                   description="Export one SQLite table as a JSON array"),
        Conversion("csv", "sqlite", "database", SQLITE3, _sqlite_csv_import,
                   required_options=("table",), updates_output=True,
                   description="Import a CSV file into an SQLite table"),
        Conversion("dbf", "csv", "dbase", DBFREAD, _dbf_args("csv"),
                   description="Read a dBASE table and write CSV"),
        Conversion("dbf", "json", "dbase", DBFREAD, _dbf_args("json"),
                   description="Read a dBASE table and write a JSON array"),
    ])

    for source in DATA_FORMATS:
        for target in DATA_FORMATS:
            if source != target:
                entries.append(Conversion(
                    source, target, "data", YQ, _yq_args(source, target), writes_stdout=True,
                    description=f"Convert {source.upper()} to {target.upper()}",
                ))

    entries.extend([
        Conversion("text", "base64", "encoding", BASE64, _static(), writes_stdout=True,
                   description="Base64-encode a file"),
        Conversion("base64", "text", "encoding", BASE64, _static("-d"), writes_stdout=True,
                   description="Decode a base64 file"),
        Conversion("utf8", "utf16", "encoding", ICONV, _static("-f", "UTF-8", "-t", "UTF-16LE"),
                   writes_stdout=True, description="Re-encode UTF-8 text as UTF-16LE"),
        Conversion("utf16", "utf8", "encoding", ICONV, _static("-f", "UTF-16LE", "-t", "UTF-8"),
                   writes_stdout=True, description="Re-encode UTF-16LE text as UTF-8"),
        Conversion("text", "hex", "encoding", XXD, _static("-p"), writes_stdout=True,
                   description="Plain hex dump of a file"),
        Conversion("hex", "text", "encoding", XXD, _static("-r", "-p"), writes_stdout=True,
                   description="Rebuild a file from a plain hex dump"),
    ])

    return {entry.name: entry for entry in entries}


CATALOG: Dict[str, Conversion] = build_catalog()

CATEGORIES = ("audio", "database", "dbase", "data", "encoding")


def get_conversion(name: str) -> Conversion:
    """
    Look up a conversion by name.

    Raises:
        KeyError: if no conversion has that name
    """
    return CATALOG[name.lower()]


def find_conversion(source: str, target: str) -> Optional[Conversion]:
    return CATALOG.get(conversion_name(source.lower(), target.lower()))


def list_conversions(category: Optional[str] = None, tool: Optional[str] = None) -> List[Conversion]:
    """Conversions sorted by name, optionally filtered by category or tool id."""
    result = []
    for name in sorted(CATALOG):
        entry = CATALOG[name]
        if category and entry.category != category:
            continue
        if tool and entry.tool.id != tool:
            continue
        result.append(entry)
    return result


FORMAT_EXTENSIONS: Dict[str, str] = {
    "wav": ".wav", "mp3": ".mp3", "flac": ".flac", "ogg": ".ogg", "opus": ".opus",
    "m4a": ".m4a", "aiff": ".aiff",
    "sqlite": ".db", "sql": ".sql", "dbf": ".dbf",
    "yaml": ".yaml", "json": ".json", "toml": ".toml", "csv": ".csv", "tsv": ".tsv", "xml": ".xml",
    "text": ".txt", "base64": ".b64", "utf8": ".txt", "utf16": ".utf16", "hex": ".hex",
}

EXTENSION_FORMATS: Dict[str, str] = {
    ".yml": "yaml", ".sqlite": "sqlite", ".sqlite3": "sqlite", ".aif": "aiff",
}
for _fmt, _ext in FORMAT_EXTENSIONS.items():
    EXTENSION_FORMATS.setdefault(_ext, _fmt)


def format_for_path(path: str) -> Optional[str]:
    """Guess a format name from a file extension (``data.yml`` -> ``yaml``)."""
    dot = str(path).rfind('.')
    if dot == -1:
        return None
    return EXTENSION_FORMATS.get(str(path)[dot:].lower())


def extension_for_format(fmt: str) -> str:
    return FORMAT_EXTENSIONS.get(fmt, f".{fmt}")


def formats() -> List[str]:
    """Every format name that appears as a source or target."""
    names = set()
    for entry in CATALOG.values():
        names.add(entry.source)
        names.add(entry.target)
    return sorted(names)
