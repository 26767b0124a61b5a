# tests/test_logging_conf.py
"""
Logging Configuration Tests - Handlers, Product Tagging and Debug Areas

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- socialprice.shared.logging_conf (setup_logging, LOG_AREAS)
- pytest (testing framework)
"""
import logging

import pytest  # Testing framework for writing and running tests

from socialprice.shared.logging_conf import LOG_AREAS, debug_areas_from_env, setup_logging


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    monkeypatch.delenv("SOCIALPRICE_LOG_DEBUG", raising=False)
    monkeypatch.setenv("SOCIALPRICE_LOG_STDOUT", "false")
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in saved_handlers:
            handler.close()
    root.handlers = saved_handlers
    root.setLevel(saved_level)
    for name in [*LOG_AREAS.values(), "urllib3", "requests"]:
        logging.getLogger(name).setLevel(logging.NOTSET)


def test_log_dir_gets_rotating_file(tmp_path):
    setup_logging(log_dir=tmp_path / "logs", product_id=7)
    logging.getLogger("socialprice.application.market_session").info("Market session open")

    for handler in logging.getLogger().handlers:
        handler.flush()
    text = (tmp_path / "logs" / "socialprice.log").read_text(encoding="utf-8")
    assert "[product=7] socialprice.application.market_session :: Market session open" in text


def test_http_client_loggers_quieted(tmp_path):
    setup_logging(log_dir=tmp_path)
    assert logging.getLogger("urllib3").level == logging.WARNING
    assert logging.getLogger("requests").level == logging.WARNING


def test_debug_areas_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("SOCIALPRICE_LOG_DEBUG", " Stores, realtime ,nonsense")
    assert debug_areas_from_env() == ["stores", "realtime"]

    setup_logging(log_dir=tmp_path)

    assert logging.getLogger("socialprice.application.stores").level == logging.DEBUG
    assert logging.getLogger("socialprice.application.stores.votes").getEffectiveLevel() == logging.DEBUG
    assert logging.getLogger("socialprice.adapters.backend.realtime").level == logging.DEBUG
    assert logging.getLogger("socialprice.application.market_session").getEffectiveLevel() == logging.INFO


def test_store_debug_lines_reach_the_file(monkeypatch, tmp_path):
    monkeypatch.setenv("SOCIALPRICE_LOG_DEBUG", "stores")
    setup_logging(log_dir=tmp_path)

    logging.getLogger("socialprice.application.stores.base").debug("votes Pending(1) added optimistically")
    logging.getLogger("socialprice.application.rates_service").debug("not shown")

    for handler in logging.getLogger().handlers:
        handler.flush()
    text = (tmp_path / "socialprice.log").read_text(encoding="utf-8")
    assert "[product=-]" in text
    assert "added optimistically" in text
    assert "not shown" not in text
