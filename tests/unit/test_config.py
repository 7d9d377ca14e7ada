"""Unit tests for settings validation."""

import pytest
from pydantic import ValidationError

from video_processing.shared.aws_clients import build_aws_config
from video_processing.shared.config import Settings, get_settings


class TestSettings:
    """Tests for environment-driven configuration."""

    def test_reads_environment(self):
        settings = get_settings()

        assert settings.raw_bucket == "test-raw-videos"
        assert settings.processed_bucket == "test-processed-videos"
        assert settings.videos_table == "test-videos"

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch):
        for var in ("RAW_VIDEO_BUCKET", "PROCESSED_VIDEO_BUCKET", "VIDEOS_TABLE"):
            monkeypatch.delenv(var, raising=False)

        settings = Settings()

        assert settings.rendition_height == 360
        assert settings.transcode_timeout_seconds is None
        assert settings.store_max_attempts == 1
        assert settings.intake_dir == "./raw-videos"
        assert settings.output_dir == "./processed-videos"

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_rejects_invalid_bucket_name(self):
        with pytest.raises(ValidationError):
            Settings(raw_bucket="Not_A_Bucket")

    def test_rejects_same_bucket_twice(self):
        with pytest.raises(ValidationError):
            Settings(raw_bucket="videos", processed_bucket="videos")

    def test_rejects_same_directory_twice(self):
        with pytest.raises(ValidationError):
            Settings(intake_dir="/tmp/videos", output_dir="/tmp/videos")

    def test_rejects_odd_rendition_height(self):
        with pytest.raises(ValidationError):
            Settings(rendition_height=361)

    def test_timeout_from_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("TRANSCODE_TIMEOUT_SECONDS", "900")

        assert Settings().transcode_timeout_seconds == 900.0


class TestAwsConfig:
    """Tests for botocore configuration."""

    def test_single_attempt_by_default(self):
        config = build_aws_config()

        assert config.retries["max_attempts"] == 1
        assert config.connect_timeout == 60.0

    def test_retries_configurable(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("STORE_MAX_ATTEMPTS", "4")
        monkeypatch.setenv("STORE_READ_TIMEOUT_SECONDS", "15")

        config = build_aws_config()

        assert config.retries["max_attempts"] == 4
        assert config.read_timeout == 15.0
