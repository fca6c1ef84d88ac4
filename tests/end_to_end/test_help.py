import sys
import unittest
from unittest.mock import patch

from realign_targets.main import main


class TestHelpMenu(unittest.TestCase):
    def test_main(self):
        with patch.object(sys, 'argv', ['realign_targets', '-h']):
            try:
                returncode = main()
            except SystemExit as err:
                self.assertEqual(0, err.code)
            else:
                self.assertEqual(0, returncode)

    def test_version(self):
        with patch.object(sys, 'argv', ['realign_targets', '--version']):
            try:
                returncode = main()
            except SystemExit as err:
                self.assertEqual(0, err.code)
            else:
                self.assertEqual(0, returncode)

    def test_missing_required(self):
        with patch.object(sys, 'argv', ['realign_targets']):
            with self.assertRaises(SystemExit) as err:
                main()
            self.assertEqual(2, err.exception.code)
