"""
Output format utilities for profilekit commands.

Turns iterables of flat-ish dictionaries (conversion results, metrics
rows, suite results) into JSON, JSONL, CSV, TSV or YAML text.
"""

import csv
import io
import json
import os
from typing import Dict, List, Any, Iterable, Iterator, Optional

import yaml

FORMATS = ('json', 'jsonl', 'csv', 'tsv', 'yaml')


def format_output(data: Iterable[Dict[str, Any]], format: str,
                  fields: Optional[List[str]] = None) -> Iterator[str]:
    """
    Format records according to the requested format.

    Args:
        data: Records to format
        format: One of json, jsonl, csv, tsv, yaml
        fields: Columns to keep (csv/tsv only)

    Yields:
        Text chunks ready to print

    Raises:
        ValueError: unknown format
    """
    if format == "jsonl":
        for item in data:
            yield json.dumps(item, ensure_ascii=False)
    elif format == "json":
        yield json.dumps(list(data), ensure_ascii=False, indent=2)
    elif format == "yaml":
        yield yaml.safe_dump(list(data), default_flow_style=False, allow_unicode=True, sort_keys=False)
    elif format == "csv":
        yield from format_delimited(data, ',', fields)
    elif format == "tsv":
        yield from format_delimited(data, '\t', fields)
    else:
        raise ValueError(f"Unknown format: {format}")


def format_delimited(data: Iterable[Dict[str, Any]], delimiter: str,
                     fields: Optional[List[str]] = None) -> Iterator[str]:
    """CSV/TSV with a header row; nested values are flattened to dotted keys."""
    rows = [flatten_dict(item) for item in data if isinstance(item, dict)]
    if not rows:
        return

    if fields is None:
        # column order of first appearance
        fields = []
        for row in rows:
            for key in row:
                if key not in fields:
                    fields.append(key)

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=fields, delimiter=delimiter,
                            extrasaction='ignore', lineterminator='\n')
    writer.writeheader()
    writer.writerows(rows)
    yield output.getvalue().rstrip('\n')


def flatten_dict(d: Dict[str, Any], parent_key: str = '', sep: str = '.') -> Dict[str, Any]:
    """
    Flatten a nested dictionary.

    Example:
        {'a': {'b': 1, 'c': 2}} -> {'a.b': 1, 'a.c': 2}

    Lists of scalars become comma-separated strings; lists of mappings
    are replaced by a ``<key>_count`` column.
    """
    items: List[tuple] = []
    for k, v in d.items():
        new_key = f"{parent_key}{sep}{k}" if parent_key else k

        if isinstance(v, dict):
            items.extend(flatten_dict(v, new_key, sep=sep).items())
        elif isinstance(v, list):
            if v and not isinstance(v[0], (dict, list)):
                items.append((new_key, ', '.join(str(item) for item in v)))
            elif v:
                items.append((new_key + '_count', len(v)))
            else:
                items.append((new_key, ''))
        else:
            items.append((new_key, v))

    return dict(items)


def get_format_from_env(default: str = 'table') -> str:
    """
    Output format from the PROFILEKIT_FORMAT environment variable.

    Unknown values fall back to ``default``.
    """
    value = os.environ.get('PROFILEKIT_FORMAT', default).lower()
    if value not in FORMATS + ('table',):
        return default
    return value


def write_output(chunks: Iterable[str], path: Optional[str] = None) -> None:
    """Print formatted chunks, or write them to a file when a path is given."""
    if path is None:
        for chunk in chunks:
            print(chunk, flush=True)
        return
    with open(path, 'w', encoding='utf-8', newline='') as f:
        for chunk in chunks:
            f.write(chunk)
            if not chunk.endswith('\n'):
                f.write('\n')
