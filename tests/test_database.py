"""
Tests for database engine configuration.
"""

from pat.db.database import engine_options


class TestEngineOptions:
    def test_sqlite_allows_cross_thread_use(self):
        assert engine_options("sqlite:///./pat.db") == {
            "connect_args": {"check_same_thread": False}
        }

    def test_other_backends_get_no_sqlite_arguments(self):
        assert engine_options("postgresql://user:pw@localhost/pat") == {}
