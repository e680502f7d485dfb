"""
doit tasks for testing treelox.
Run with: doit
"""

from pathlib import Path

# Python test files
PYTHON_TESTS = sorted(str(path) for path in Path('tests').glob('test_*.py'))
SOURCES = sorted(str(path) for path in Path('src/treelox').glob('*.py'))


def task_test_python():
    """Run Python tests"""
    def run_python_tests():
        import pytest
        return pytest.main(['-v'] + PYTHON_TESTS) == 0

    return {
        'actions': [run_python_tests],
        'file_dep': PYTHON_TESTS + SOURCES,
        'verbosity': 2,
    }


def task_test():
    """Run all tests"""
    return {
        'actions': None,
        'task_dep': ['test_python'],
    }
