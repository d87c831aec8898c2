from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any


class ConnectionStub:
    def __init__(self, engine: "EngineStub") -> None:
        self._engine = engine

    async def execute(self, stmt: Any) -> None:
        self._engine.statements.append(stmt)
        if self._engine.fail_on is not None and isinstance(stmt, self._engine.fail_on):
            raise self._engine.make_error(stmt)


class EngineStub:
    """
    Records statements instead of talking to Postgres.

    Only the `begin()` transaction context and `dispose()` are used by the seeder.
    """

    def __init__(
        self,
        fail_on: type | None = None,
        error_message: str = "statement failed",
        error: type[Exception] | None = None,
    ) -> None:
        self.statements: list[Any] = []
        self.fail_on = fail_on
        self.error_message = error_message
        # None raises RuntimeError; DBAPIError wraps the message the way SQLAlchemy wraps driver errors.
        self.error = error
        self.disposed = False

    def make_error(self, stmt: Any) -> Exception:
        if self.error is None:
            return RuntimeError(self.error_message)
        from sqlalchemy.dialects import postgresql

        compiled = stmt.compile(dialect=postgresql.dialect())
        return self.error.instance(str(compiled), compiled.params, Exception(self.error_message), Exception)

    @asynccontextmanager
    async def begin(self):
        yield ConnectionStub(self)

    async def dispose(self) -> None:
        self.disposed = True
