"""
Unit tests for profilekit.format_utils and profilekit.progress
"""
import json
import os
import unittest
from unittest.mock import patch

import yaml

from profilekit.format_utils import (
    flatten_dict,
    format_output,
    get_format_from_env,
    write_output,
)
from profilekit.progress import ProgressReporter, get_progress

ROWS = [
    {'name': 'csv-to-json', 'status': 'success', 'meta': {'tool': 'yq'}},
    {'name': 'wav-to-mp3', 'status': 'skipped', 'errors': ['ffmpeg missing']},
]


class TestFormatOutput(unittest.TestCase):

    def test_jsonl(self):
        lines = list(format_output(iter(ROWS), 'jsonl'))
        self.assertEqual(len(lines), 2)
        self.assertEqual(json.loads(lines[0])['name'], 'csv-to-json')

    def test_json(self):
        chunks = list(format_output(iter(ROWS), 'json'))
        self.assertEqual(json.loads(chunks[0]), ROWS)

    def test_yaml(self):
        chunks = list(format_output(iter(ROWS), 'yaml'))
        self.assertEqual(yaml.safe_load(chunks[0]), ROWS)

    def test_csv_columns_in_first_seen_order(self):
        text = list(format_output(iter(ROWS), 'csv'))[0]
        lines = text.split('\n')
        self.assertEqual(lines[0], 'name,status,meta.tool,errors')
        self.assertEqual(lines[1], 'csv-to-json,success,yq,')
        self.assertEqual(lines[2], 'wav-to-mp3,skipped,,ffmpeg missing')

    def test_tsv_with_fields(self):
        text = list(format_output(iter(ROWS), 'tsv', fields=['status', 'name']))[0]
        self.assertEqual(text.split('\n')[0], 'status\tname')

    def test_empty_csv(self):
        self.assertEqual(list(format_output(iter([]), 'csv')), [])

    def test_unicode_is_kept(self):
        line = list(format_output(iter([{'name': 'café ✓'}]), 'jsonl'))[0]
        self.assertIn('café ✓', line)

    def test_unknown_format(self):
        with self.assertRaises(ValueError):
            list(format_output(iter(ROWS), 'xml'))

    def test_flatten_dict(self):
        self.assertEqual(
            flatten_dict({'a': {'b': 1}, 'c': [1, 2], 'd': [{'x': 1}], 'e': []}),
            {'a.b': 1, 'c': '1, 2', 'd_count': 1, 'e': ''},
        )

    def test_write_output_to_file(self):
        import tempfile
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'out.csv')
            write_output(['a,b\n1,2'], path)
            with open(path, encoding='utf-8') as f:
                self.assertEqual(f.read(), 'a,b\n1,2\n')


class TestFormatFromEnv(unittest.TestCase):

    def test_default(self):
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(get_format_from_env(), 'table')

    def test_env_value(self):
        with patch.dict(os.environ, {'PROFILEKIT_FORMAT': 'JSONL'}):
            self.assertEqual(get_format_from_env(), 'jsonl')

    def test_invalid_env_value(self):
        with patch.dict(os.environ, {'PROFILEKIT_FORMAT': 'html'}):
            self.assertEqual(get_format_from_env('json'), 'json')


class TestProgress:

    def test_disabled_reporter_is_silent(self, capsys):
        progress = ProgressReporter(enabled=False, use_colors=False)
        progress("working")
        progress.warning("careful")
        progress.success("done")
        assert capsys.readouterr().err == ""

    def test_errors_always_shown(self, capsys):
        ProgressReporter(enabled=False, use_colors=False).error("broken")
        assert "ERROR: broken" in capsys.readouterr().err

    def test_enabled_reporter(self, capsys):
        progress = ProgressReporter(enabled=True, use_colors=False)
        progress.success("done")
        progress.warning("careful")
        err = capsys.readouterr().err
        assert "✓ done" in err
        assert "WARNING: careful" in err

    def test_drain_returns_generator_value(self, capsys):
        def work():
            yield "step 1"
            yield "step 2"
            return {'ok': True}

        progress = ProgressReporter(enabled=True, use_colors=False)
        assert progress.drain(work(), prefix="job: ") == {'ok': True}
        err = capsys.readouterr().err
        assert "job: step 1" in err and "job: step 2" in err

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv('PROFILEKIT_PROGRESS', '1')
        assert get_progress().enabled is True
        monkeypatch.setenv('PROFILEKIT_PROGRESS', '0')
        assert get_progress().enabled is False
        assert get_progress(enabled=True).enabled is True


if __name__ == '__main__':
    unittest.main()
