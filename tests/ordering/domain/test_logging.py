import structlog
from ordering.utils.logging import add_context, clear_context, get_log_level


class TestLogLevel:
    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "error")
        assert get_log_level() == "ERROR"

    def test_level_follows_environment(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("ENV", raising=False)
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        monkeypatch.setenv("PROTEAN_ENV", "production")
        assert get_log_level() == "INFO"

    def test_unknown_environment_defaults_to_info(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("ENV", "qa")
        assert get_log_level() == "INFO"


class TestRequestContext:
    def test_context_is_bound_until_cleared(self):
        clear_context()
        add_context(request_id="req-1", path="/orders")
        assert structlog.contextvars.get_contextvars() == {"request_id": "req-1", "path": "/orders"}

        clear_context()
        assert structlog.contextvars.get_contextvars() == {}
