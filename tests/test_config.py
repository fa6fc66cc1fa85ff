import logging
import time

import pytest

from collective import ConfigurationError
from collective.clock import FORMAT_HHMMSS, Clock
from collective.config import SETTINGS, BuildContext, check_settings
from collective.logging_setups import basic_logging_setup


class TestSettings:

    def test_defaults_pass(self):
        check_settings(dict(SETTINGS))

    @pytest.mark.parametrize("params", [
        {"folds": -1}, {"k": 0}, {"max_k": 0}, {"num_restarts": 0}, {"num_iterations": 1.5}, {"cv_folds": True},
    ])
    def test_invalid(self, params):
        with pytest.raises(ConfigurationError):
            check_settings(params)

    def test_k_may_be_none(self):
        check_settings({"k": None})


class TestBuildContext:

    def test_same_seed_same_numbers(self):
        assert BuildContext(seed=5).rng.random() == BuildContext(seed=5).rng.random()

    def test_timed_records(self):
        context = BuildContext()
        with context.timed("work") as clock:
            time.sleep(0.01)
        assert not clock.running
        assert context.timings["work"] >= 0.01

    def test_verbose_logs_at_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="collective"):
            BuildContext(verbose=True).log("Determined KNN = %d", 5)
            BuildContext(verbose=False).log("hidden")
        assert "Determined KNN = 5" in caplog.text
        assert "hidden" not in caplog.text


class TestClock:

    def test_formats(self):
        clock = Clock(FORMAT_HHMMSS).start().stop()
        assert str(clock) == "00:00:00"

    def test_stop_without_start(self):
        with pytest.raises(RuntimeError):
            Clock().stop()

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            Clock("minutes")


class TestLoggingSetup:

    def test_file_handler(self, tmp_path):
        logfile = tmp_path / "logs" / "run.log"
        logger = basic_logging_setup(logfile=str(logfile))
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in logfile.read_text()
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logger.propagate = True
