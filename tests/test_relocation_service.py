"""
Tests for RelocationService — guarded moves of duplicate files.
The destination is checked before the first move; a bad destination moves nothing.
"""
import os

from imgdedup.core.models import RelocationState
from imgdedup.services.relocation_service import RelocationService


def make_files(directory, names):
    paths = []
    for name in names:
        path = directory / name
        path.write_bytes(name.encode())
        paths.append(str(path))
    return paths


class TestRelocationService:
    def test_moves_all_files(self, tmp_path):
        source = tmp_path / "src"
        source.mkdir()
        paths = make_files(source, ["a.png", "b.png", "c.png"])
        dest = tmp_path / "dest"

        report = RelocationService.relocate(paths, str(dest))

        assert report.state == RelocationState.DONE
        assert not report.aborted
        assert len(report.moved) == 3
        assert report.failed == []
        assert sorted(os.listdir(dest)) == ["a.png", "b.png", "c.png"]
        assert os.listdir(source) == []

    def test_empty_input_touches_nothing(self, tmp_path):
        dest = tmp_path / "never-created"

        report = RelocationService.relocate([], str(dest))

        assert report.state == RelocationState.DONE
        assert report.attempted == 0
        assert not dest.exists()

    def test_bad_destination_aborts_before_any_move(self, tmp_path):
        """CRITICAL: A destination that cannot be created must leave every source in place."""
        source = tmp_path / "src"
        source.mkdir()
        paths = make_files(source, ["a.png", "b.png"])
        blocker = tmp_path / "file.txt"
        blocker.write_text("not a directory")

        report = RelocationService.relocate(paths, str(blocker / "dest"))

        assert report.aborted
        assert report.state == RelocationState.ABORTED
        assert report.moved == []
        assert report.failed == []
        assert report.error
        assert sorted(os.listdir(source)) == ["a.png", "b.png"]

    def test_per_file_failures_do_not_stop_the_batch(self, tmp_path):
        source = tmp_path / "src"
        source.mkdir()
        paths = make_files(source, ["a.png", "b.png", "c.png"])
        dest = tmp_path / "dest"
        dest.mkdir()
        (dest / "b.png").write_bytes(b"already here")
        paths.insert(1, str(source / "missing.png"))

        report = RelocationService.relocate(paths, str(dest))

        assert report.state == RelocationState.DONE
        assert [os.path.basename(src) for src, _ in report.moved] == ["a.png", "c.png"]
        assert [os.path.basename(src) for src, _ in report.failed] == ["missing.png", "b.png"]
        assert report.attempted == 4
        assert (dest / "b.png").read_bytes() == b"already here"
        assert (source / "b.png").exists()

    def test_progress_callback_per_attempt(self, tmp_path):
        paths = make_files(tmp_path, ["a.png", "b.png"])
        events = []

        RelocationService.relocate(paths, str(tmp_path / "dest"), progress_callback=lambda *a: events.append(a))

        assert events == [("Moving", 1, 2), ("Moving", 2, 2)]
