"""Tests for configuration loading."""

import pytest


class TestLoadConfig:
    """Test cases for the YAML loader."""

    def test_missing_file(self, tmp_path):
        """A missing file yields an empty dict."""
        from face_recognition_app.constants import load_config

        assert load_config(tmp_path / "absent.yaml") == {}

    def test_invalid_yaml(self, tmp_path):
        """Unparseable YAML yields an empty dict."""
        from face_recognition_app.constants import load_config

        path = tmp_path / "config.yaml"
        path.write_text("session: [unclosed\n")

        assert load_config(path) == {}

    def test_shipped_config(self):
        """The bundled config file carries the documented defaults."""
        from face_recognition_app.constants import DEFAULT_CONFIG_PATH, load_app_config

        assert DEFAULT_CONFIG_PATH.exists()
        config = load_app_config()

        assert config.storage.key == "face_descriptors"
        assert config.session.in_flight_policy == "discard"


class TestAppConfig:
    """Test cases for AppConfig sections."""

    def test_defaults(self):
        """Defaults match the documented constants."""
        from face_recognition_app.constants import AppConfig

        config = AppConfig()

        assert config.brightness.dark_threshold == 60
        assert config.matching.distance_threshold == 0.6
        assert config.matching.embedding_dim == 128
        assert config.session.poll_interval == 0.3
        assert config.session.duration == 30.0
        assert config.session.skip_if_busy is True
        assert (config.camera.width, config.camera.height) == (640, 480)

    def test_partial_override(self, tmp_path):
        """Values in the file override; missing keys keep their defaults."""
        from face_recognition_app.constants import load_app_config

        path = tmp_path / "config.yaml"
        path.write_text(
            "matching:\n"
            "  distance_threshold: 0.5\n"
            "session:\n"
            "  duration: 10\n"
            "  in_flight_policy: apply\n"
            "camera:\n"
            "  resolution: [320, 240]\n"
        )

        config = load_app_config(path)

        assert config.matching.distance_threshold == 0.5
        assert config.session.duration == 10.0
        assert config.session.in_flight_policy == "apply"
        assert config.session.poll_interval == 0.3
        assert config.brightness.dark_threshold == 60
        assert (config.camera.width, config.camera.height) == (320, 240)

    @pytest.mark.parametrize("section", ["brightness", "matching", "session", "storage"])
    def test_empty_section(self, tmp_path, section):
        """An empty section falls back to defaults."""
        from face_recognition_app.constants import AppConfig, load_app_config

        path = tmp_path / "config.yaml"
        path.write_text(f"{section}:\n")

        assert load_app_config(path) == AppConfig()


class TestGlobalConfig:
    """Test cases for the Config singleton."""

    def test_reload_feeds_default_app_config(self, tmp_path, fake_detector_cls):
        """Without an explicit config the app uses the reloaded file."""
        from face_recognition_app import FaceRecognitionApp
        from face_recognition_app.constants import get_app_config, get_config

        path = tmp_path / "config.yaml"
        path.write_text("matching:\n  distance_threshold: 0.45\n")

        config = get_config()
        try:
            config.reload(path)
            assert get_app_config().matching.distance_threshold == 0.45

            app = FaceRecognitionApp(fake_detector_cls())
            assert app.config.matching.distance_threshold == 0.45
            assert app.session.matching.distance_threshold == 0.45
        finally:
            config.reload()
