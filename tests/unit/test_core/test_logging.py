"""
test_logging.py - 로깅 설정 테스트
"""

import logging

import pytest

from src.core.logging import mask_secret, setup_logging


@pytest.fixture
def restore_src_logger():
    logger = logging.getLogger("src")
    level = logger.level
    yield logger
    logger.setLevel(level)


class TestSetupLogging:
    """setup_logging 테스트."""

    def test_level_from_config(self, restore_src_logger):
        setup_logging({"logging": {"level": "debug"}})

        assert restore_src_logger.level == logging.DEBUG

    def test_defaults_to_info(self, restore_src_logger):
        setup_logging({})

        assert restore_src_logger.level == logging.INFO

    def test_unknown_level_falls_back_to_info(self, restore_src_logger):
        setup_logging({"logging": {"level": "LOUD"}})

        assert restore_src_logger.level == logging.INFO

    def test_none_config(self, restore_src_logger):
        setup_logging(None)

        assert restore_src_logger.level == logging.INFO


class TestMaskSecret:
    """mask_secret 테스트."""

    def test_unset(self):
        assert mask_secret(None) == "(unset)"
        assert mask_secret("") == "(unset)"

    def test_short_fully_masked(self):
        assert mask_secret("abc") == "***"

    def test_long_truncated(self):
        masked = mask_secret("sk-or-v1-1234567890abcdef")

        assert masked == "sk-or-..."
        assert "1234567890" not in masked
