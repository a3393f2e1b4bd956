import json
import logging
import logging.handlers
import pytest
from pydantic import ValidationError

from specz.config.logging import JsonFormatter, get_logger, init_logging, logging_config
from specz.config.settings import PipelineSettings


class TestPipelineSettings:

    def test_defaults(self):
        settings = PipelineSettings(_env_file=None)
        assert settings.array_size == 4096
        assert settings.fft_size == 8192
        assert settings.median_width == 51
        assert settings.template_path is None

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("SPECZ_ARRAY_SIZE", "512")
        monkeypatch.setenv("SPECZ_LOG_LEVEL", "debug")
        settings = PipelineSettings(_env_file=None)
        assert settings.array_size == 512
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("overrides", [
        {"median_width": 50},
        {"smooth_width": 0},
        {"array_size": 1},
        {"trim_amount": 1.0},
        {"log_level": "LOUD"},
        {"start_power": 4.0, "end_power": 3.3},
        {"array_size": 4096, "fft_size": 2048},
    ])
    def test_rejected_values(self, overrides):
        with pytest.raises(ValidationError):
            PipelineSettings(_env_file=None, **overrides)


class TestLogging:

    def test_get_logger_uses_module_name(self):
        assert get_logger().name == __name__
        assert get_logger("specz.test").name == "specz.test"

    def test_json_formatter(self):
        record = logging.LogRecord("specz.test", logging.INFO, __file__, 10, "matched %s", ("abc",), None)
        record.extra_fields = {"template_id": "abc"}
        entry = json.loads(JsonFormatter().format(record))
        assert entry["message"] == "matched abc"
        assert entry["level"] == "INFO"
        assert entry["template_id"] == "abc"

    def test_config_uses_settings(self, tmp_path):
        config = logging_config(PipelineSettings(_env_file=None, log_dir=str(tmp_path), log_level="warning"))
        assert config["root"]["level"] == "WARNING"
        assert config["handlers"]["file"]["filename"] == str(tmp_path / "specz.log")
        assert config["loggers"]["concurrent.futures"]["propagate"] is False

    def test_init_logging_writes_rotating_file(self, tmp_path):
        log_dir = tmp_path / "logs"
        init_logging(PipelineSettings(_env_file=None, log_dir=str(log_dir)))
        try:
            get_logger("specz.test").info("hello")
            assert (log_dir / "specz.log").exists()
        finally:
            root = logging.getLogger()
            for handler in list(root.handlers):
                if isinstance(handler, logging.handlers.RotatingFileHandler):
                    root.removeHandler(handler)
                    handler.close()
