"""Tests for :mod:`casgate.cli`."""

import os
import tempfile
from unittest import TestCase, mock

from click.testing import CliRunner

from casgate.cli import main

CONFIG = """
CONTEXT_PATH = '/portal'
URI_EXCLUSION_FILTER_PATTERN = '/static/.*'
URI_FILTER_PATTERN = '/secure/.*'
AUTHENTICATE_ONLY_IF_LOGGED_IN_FILTER_PATTERN = '/.*'
"""


@mock.patch('casgate.cli.setup_logger', mock.MagicMock())
class TestClassify(TestCase):
    """Tests for the ``classify`` command."""

    def setUp(self):
        handle, self.path = tempfile.mkstemp(suffix='.py')
        with os.fdopen(handle, 'w') as f:
            f.write(CONFIG)
        self.addCleanup(os.remove, self.path)
        self.runner = CliRunner()

    def classify(self, *args):
        return self.runner.invoke(main, ['classify', '--config', self.path,
                                         *args])

    def test_classify(self):
        """The decision is printed."""
        expected = [
            (['/portal/static/logo.png'], 'excluded'),
            (['/portal/secure/profile'], 'always_authenticate'),
            (['/portal/papers/1'], 'no_match'),
            (['/portal/papers/1', '--cookie'], 'authenticate_if_logged_in'),
        ]
        for args, decision in expected:
            result = self.classify(*args)
            self.assertEqual(result.exit_code, 0, result.output)
            self.assertEqual(result.output.strip(), decision)

    def test_bad_config(self):
        """Invalid config is reported as an error."""
        with open(self.path, 'a') as f:
            f.write("URI_FILTER_PATTERN = '/broken/('\n")
        result = self.classify('/portal/secure/profile')
        self.assertEqual(result.exit_code, 1)
        self.assertIn('Invalid URI pattern', result.output)
