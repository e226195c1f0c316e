import pytest
import structlog

from uuid_bruteforce.log import configure_logging


class TestConfigureLogging:
    """Test suite for logging setup"""

    def teardown_method(self):
        structlog.reset_defaults()

    def test_writes_to_stderr(self, capsys):
        configure_logging("INFO")
        structlog.get_logger().info("workers spawned", count=3)

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "workers spawned" in captured.err
        assert "count" in captured.err

    def test_filters_below_level(self, capsys):
        configure_logging("warning")
        log = structlog.get_logger()
        log.info("quiet")
        log.warning("loud")

        err = capsys.readouterr().err
        assert "quiet" not in err
        assert "loud" in err

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging("CHATTY")
