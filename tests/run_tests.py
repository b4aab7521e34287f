# tests/run_tests.py
"""Run the unit tests without pytest. Integration tests need ``pytest``."""
import sys
import unittest
from pathlib import Path

repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root))
sys.path.insert(0, str(repo_root / 'src'))

if __name__ == '__main__':
    suite = unittest.TestLoader().discover(
        str(Path(__file__).parent), pattern='test_*.py', top_level_dir=str(repo_root)
    )
    result = unittest.TextTestRunner(verbosity=2).run(suite)
    sys.exit(0 if result.wasSuccessful() else 1)
