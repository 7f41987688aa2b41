"""Safety tests: the suite must never touch the real ./data or ./db.

Every test runs on a temporary database through the isolated_db fixture.
"""

import hashlib
import os
from pathlib import Path

import pytest

PROTECTED_DIRS = ("data", "db")


def _fingerprint(path: Path) -> str | None:
    """Hash of relative paths, sizes and mtimes under path (None if missing)."""
    if not path.exists():
        return None

    hasher = hashlib.sha256()
    for root, dirs, files in os.walk(path):
        dirs.sort()
        for filename in sorted(files):
            file_path = Path(root) / filename
            stat = file_path.stat()
            hasher.update(str(file_path.relative_to(path)).encode())
            hasher.update(f"{stat.st_size}:{int(stat.st_mtime)}".encode())
    return hasher.hexdigest()


@pytest.fixture(scope="module")
def snapshots():
    """Fingerprints taken when this module starts."""
    return {name: _fingerprint(Path(name)) for name in PROTECTED_DIRS}


class TestProtectedDirectories:
    @pytest.mark.parametrize("name", PROTECTED_DIRS)
    def test_not_created_or_modified(self, snapshots, name):
        current = _fingerprint(Path(name))

        if snapshots[name] is None and current is not None:
            pytest.fail(f"./{name} was created during the test run. Use tmp_path.")
        if current != snapshots[name]:
            pytest.fail(f"./{name} was modified during the test run. Use tmp_path.")


class TestTestIsolation:
    def test_no_module_uses_configured_database(self):
        """init_db() without a path would open the configured database."""
        this_file = Path(__file__).resolve()
        offenders = [
            str(test_file)
            for test_file in sorted(Path("tests").rglob("test_*.py"))
            if test_file.resolve() != this_file and "init_db()" in test_file.read_text(encoding="utf-8")
        ]

        assert offenders == []
