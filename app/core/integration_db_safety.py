from __future__ import annotations

from sqlalchemy.engine import make_url

LOCAL_TEST_DB_HOSTS = frozenset(
    {
        "localhost",
        "127.0.0.1",
        "::1",
        "postgres",
        "eduwave_postgres",
        "eduwave_postgres_test",
    }
)


class UnsafeIntegrationDatabaseError(RuntimeError):
    def __init__(self, *, database_url: str, reason: str) -> None:
        parsed = make_url(database_url)
        self.reason = reason
        super().__init__(
            "Integration tests truncate every gamification table; refusing to touch "
            f"database '{parsed.database or ''}' on host '{parsed.host or ''}': {reason}. "
            "Point DATABASE_URL at a local PostgreSQL database such as 'eduwave_test'."
        )


def integration_db_refusal_reason(database_url: str) -> str | None:
    """Returns why the URL must not be used by integration tests, or None when it is safe."""
    parsed = make_url(database_url)
    backend = parsed.get_backend_name()
    if backend != "postgresql":
        return f"backend '{backend}' is not postgresql"

    database_name = (parsed.database or "").strip()
    if not database_name:
        return "database name is empty"
    if "test" not in database_name.lower():
        return "database name does not mark it as a test database"

    host = (parsed.host or "").strip().lower()
    if host not in LOCAL_TEST_DB_HOSTS:
        return f"host '{host}' is not a local test host"
    return None


def assert_safe_integration_db(database_url: str) -> None:
    reason = integration_db_refusal_reason(database_url)
    if reason is not None:
        raise UnsafeIntegrationDatabaseError(database_url=database_url, reason=reason)
