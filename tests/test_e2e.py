"""End-to-end test via main.py."""
import os
import subprocess
import sys
from pathlib import Path

REPO = Path(__file__).resolve().parent.parent


def run_main(*args):
    return subprocess.run(
        [sys.executable, "main.py", *args],
        cwd=REPO,
        env={**os.environ, "SKIP_MLFLOW": "1"},
        capture_output=True,
        text=True,
        timeout=120,
    )


def test_tests_suite():
    """Run TESTS suite end-to-end - should complete without errors."""
    result = run_main("--sweep", "configs/sweeps.yaml", "--suite", "TESTS")
    assert result.returncode == 0, f"Suite failed:\n{result.stdout}\n{result.stderr}"
    assert "Successful: 4" in result.stdout


def test_compare_modes():
    result = run_main("--compare", "--image-size", "24x16", "--max-iterations", "100", "--no-progress")
    assert result.returncode == 0, f"Compare failed:\n{result.stdout}\n{result.stderr}"
    assert "identical" in result.stdout


def test_list_suites():
    result = run_main("--sweep", "configs/sweeps.yaml", "--list-suites")
    assert result.returncode == 0
    assert "TESTS: 4 configurations" in result.stdout
