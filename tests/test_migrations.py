"""Tests for migration discovery."""

from hookcord.migrations import MigrationRunner
from hookcord.migrations.runner import VERSIONS_DIR


class TestPending:
    def test_bundled_versions_are_found(self):
        runner = MigrationRunner(pool=None)
        names = [p.stem for p in runner.pending(set())]
        assert "000_channel_configs" in names
        assert names == sorted(names)

    def test_applied_versions_are_skipped(self, tmp_path):
        for name in ("002_later", "000_first", "001_second"):
            (tmp_path / f"{name}.sql").write_text("SELECT 1;")
        (tmp_path / "notes.txt").write_text("not a migration")
        runner = MigrationRunner(pool=None, versions_dir=tmp_path)
        assert [p.stem for p in runner.pending({"000_first"})] == ["001_second", "002_later"]

    def test_default_dir(self):
        assert MigrationRunner(pool=None).versions_dir == VERSIONS_DIR
