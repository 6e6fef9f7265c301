#!/usr/bin/env python3
"""Run the event_clustering test suite without pytest.

    python tests/run_tests.py              # everything
    python tests/run_tests.py 'test_clu*'  # one area
"""
import unittest
import os
import sys

TESTS_DIR = os.path.abspath(os.path.dirname(__file__))

# Project root for the package, tests dir for the in-memory store double
sys.path.insert(0, os.path.abspath(os.path.join(TESTS_DIR, '..')))
sys.path.insert(0, TESTS_DIR)


def main(argv):
    pattern = argv[1] if len(argv) > 1 else 'test_*.py'
    suite = unittest.defaultTestLoader.discover(start_dir=TESTS_DIR, pattern=pattern)
    result = unittest.TextTestRunner(verbosity=2).run(suite)
    return 0 if result.wasSuccessful() else 1


if __name__ == '__main__':
    sys.exit(main(sys.argv))
