import logging

import pytest

from invariant_call_fuzzer_core import config as core_config
from invariant_call_fuzzer_core.config import RunConfig
from invariant_call_fuzzer_core.errors import InvalidRunConfig, InvariantFuzzError
from invariant_call_fuzzer_core.log import PACKAGE_LOGGER_NAME, configure_logging


class TestRunConfig:
    def test_defaults(self):
        run_config = RunConfig()
        assert run_config.dictionary_weight == core_config.DEFAULT_DICTIONARY_WEIGHT == 40
        assert run_config.max_sender_draw_attempts == core_config.MAX_SENDER_DRAW_ATTEMPTS

    @pytest.mark.parametrize("weight", [0, 1, 50, 99, 100])
    def test_accepts_weights_in_range(self, weight):
        assert RunConfig(dictionary_weight=weight).dictionary_weight == weight

    @pytest.mark.parametrize("weight", [-1, 101, 1000])
    def test_rejects_weights_out_of_range(self, weight):
        with pytest.raises(InvalidRunConfig):
            RunConfig(dictionary_weight=weight)

    @pytest.mark.parametrize("weight", [True, 40.0, "40", None])
    def test_rejects_non_integer_weights(self, weight):
        with pytest.raises(InvalidRunConfig):
            RunConfig(dictionary_weight=weight)

    @pytest.mark.parametrize("attempts", [0, -3])
    def test_rejects_non_positive_attempts(self, attempts):
        with pytest.raises(InvalidRunConfig):
            RunConfig(max_sender_draw_attempts=attempts)

    def test_invalid_run_config_is_a_value_error(self):
        with pytest.raises(ValueError):
            RunConfig(dictionary_weight=-5)
        assert issubclass(InvalidRunConfig, InvariantFuzzError)

    def test_repr(self):
        assert repr(RunConfig(10, 3)) == "RunConfig(dictionary_weight=10, max_sender_draw_attempts=3)"

    def test_weights_sum_to_one_hundred(self):
        assert core_config.CALLDATA_CONFIG_WEIGHT + core_config.CALLDATA_STATE_WEIGHT == 100
        assert core_config.OVERRIDE_TARGET_WEIGHT + core_config.OVERRIDE_RANDOM_CONTRACT_WEIGHT == 100


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def restore_package_logger(self):
        package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
        original_level = package_logger.level
        original_handlers = list(package_logger.handlers)
        yield
        for handler in list(package_logger.handlers):
            if handler not in original_handlers:
                package_logger.removeHandler(handler)
                handler.close()
        package_logger.setLevel(original_level)

    def test_sets_level_and_single_handler(self):
        package_logger = configure_logging(level="debug")
        added = [h for h in package_logger.handlers if getattr(h, "_invariant_call_fuzzer_handler", False)]

        assert package_logger.name == PACKAGE_LOGGER_NAME
        assert package_logger.level == logging.DEBUG
        assert len(added) == 1

    def test_repeated_calls_do_not_stack_handlers(self):
        package_logger = configure_logging(level="INFO")
        handler_count = len(package_logger.handlers)

        configure_logging(level="WARNING")

        assert len(package_logger.handlers) == handler_count
        assert package_logger.level == logging.WARNING

    def test_logs_to_file(self, tmp_path):
        log_file = tmp_path / "fuzz.log"
        package_logger = configure_logging(level="INFO", to_file=True, file_path=str(log_file))

        logging.getLogger(f"{PACKAGE_LOGGER_NAME}.generator").info("hello from the generator")
        for handler in package_logger.handlers:
            handler.flush()

        assert "hello from the generator" in log_file.read_text()
