"""Tests for the command line interface."""

import cv2
import numpy as np
import pytest


@pytest.fixture
def cli_detector(monkeypatch, fake_detector_cls, make_face, make_descriptor):
    """Patch the CLI to use a fake detector finding one fixed face."""
    detector = fake_detector_cls([make_face(make_descriptor(1))])
    monkeypatch.setattr(
        "face_recognition_app.cli.build_detector", lambda config: detector
    )
    return detector


@pytest.fixture
def image_path(tmp_path):
    path = tmp_path / "face.png"
    cv2.imwrite(str(path), np.full((120, 160, 3), 180, dtype=np.uint8))
    return str(path)


class TestCLI:
    """Test cases for CLI commands."""

    def _main(self, tmp_path, *args):
        from face_recognition_app.cli import main

        return main(["--storage-dir", str(tmp_path / "store"), *args])

    def test_no_command(self, capsys):
        """Without a command the help is printed."""
        from face_recognition_app.cli import main

        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_register_and_list(self, tmp_path, image_path, cli_detector, capsys):
        """A registered identity is persisted and listed."""
        assert self._main(tmp_path, "register", "-n", "Alice", "-i", image_path) == 0
        assert "Alice registered successfully!" in capsys.readouterr().out
        assert (tmp_path / "store" / "face_descriptors.json").exists()

        assert self._main(tmp_path, "list") == 0
        assert "Alice: 1 descriptor(s)" in capsys.readouterr().out

    def test_register_blank_name(self, tmp_path, image_path, cli_detector):
        """A blank name fails without writing the store."""
        assert self._main(tmp_path, "register", "-n", "  ", "-i", image_path) == 1
        assert not (tmp_path / "store" / "face_descriptors.json").exists()

    def test_recognize(self, tmp_path, image_path, cli_detector, capsys):
        """Recognize prints each face's label."""
        self._main(tmp_path, "register", "-n", "Alice", "-i", image_path)
        capsys.readouterr()

        output = tmp_path / "labelled.png"
        assert self._main(tmp_path, "recognize", "-i", image_path, "-o", str(output)) == 0

        out = capsys.readouterr().out
        assert "Found 1 face(s)" in out
        assert "Alice (0)" in out
        assert output.exists()

    def test_recognize_empty_registry(self, tmp_path, image_path, cli_detector):
        """Recognize with nothing registered fails."""
        assert self._main(tmp_path, "recognize", "-i", image_path) == 1
        assert cli_detector.calls == 0

    def test_list_empty(self, tmp_path, capsys):
        assert self._main(tmp_path, "list") == 0
        assert "No identities registered" in capsys.readouterr().out

    def test_missing_image(self, tmp_path, cli_detector):
        """An unreadable image path returns 1."""
        missing = str(tmp_path / "missing.png")
        assert self._main(tmp_path, "register", "-n", "Alice", "-i", missing) == 1
        assert self._main(tmp_path, "check", "-i", missing) == 1

    def test_check_dark_image(self, tmp_path, capsys):
        """A dark image prints the brightness warning."""
        path = tmp_path / "dark.png"
        cv2.imwrite(str(path), np.full((50, 50, 3), 20, dtype=np.uint8))

        assert self._main(tmp_path, "check", "-i", str(path)) == 0

        out = capsys.readouterr().out
        assert "too_dark" in out
        assert "too dark" in out

    def test_check_bright_image(self, tmp_path, image_path, capsys):
        assert self._main(tmp_path, "check", "-i", image_path) == 0
        out = capsys.readouterr().out
        assert "(ok)" in out
        assert "Warning" not in out
