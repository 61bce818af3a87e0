"""
Tests for delivery_orders.config and the catalog repository.
"""

import logging

import pytest

from delivery_orders.config import Settings
from delivery_orders.domain import Product
from delivery_orders.repository import (
    DuplicateRecordError,
    RecordNotFoundError,
    product_repository,
)


class TestSettings:
    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.remote_url == ""
        assert not settings.uses_remote
        assert settings.default_delivery_time == "08:00"

    def test_from_env(self):
        settings = Settings.from_env(
            {
                "ORDER_DESK_REMOTE_URL": " https://example.invalid/exec ",
                "ORDER_DESK_TIMEOUT": "4.5",
                "ORDER_DESK_DEFAULT_DELIVERY_TIME": "6:45",
                "ORDER_DESK_LOG_LEVEL": "debug",
            }
        )
        assert settings.uses_remote
        assert settings.request_timeout == 4.5
        assert settings.default_delivery_time == "06:45"
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("raw", ["soon", "0", "-3"])
    def test_bad_timeout_falls_back_with_warning(self, raw, caplog):
        with caplog.at_level(logging.WARNING, logger="delivery_orders.config"):
            settings = Settings.from_env({"ORDER_DESK_TIMEOUT": raw})
        assert settings.request_timeout == 15.0
        assert "ORDER_DESK_TIMEOUT" in caplog.text

    def test_unset_timeout_is_silent(self, caplog):
        with caplog.at_level(logging.WARNING, logger="delivery_orders.config"):
            assert Settings.from_env({}).request_timeout == 15.0
        assert caplog.text == ""


class TestRepository:
    def test_add_get_remove(self):
        repo = product_repository()
        repo.add(Product("noodle", "jin"))
        assert repo.get("noodle").unit == "jin"
        with pytest.raises(DuplicateRecordError):
            repo.add(Product("noodle", "kg"))
        repo.remove("noodle")
        with pytest.raises(RecordNotFoundError):
            repo.get("noodle")

    def test_replace_all_lenient_keeps_last(self):
        repo = product_repository()
        repo.replace_all([Product("noodle", "jin"), Product("noodle", "kg")], strict=False)
        assert repo.list() == [Product("noodle", "kg")]

    def test_replace_all_strict_leaves_collection_on_error(self):
        repo = product_repository()
        repo.add(Product("bun", "pack"))
        with pytest.raises(DuplicateRecordError):
            repo.replace_all([Product("noodle"), Product("noodle")])
        assert repo.list() == [Product("bun", "pack")]
