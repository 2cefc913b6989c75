"""Process-wide default connection for building queries."""
from __future__ import annotations

from typing import Any, ClassVar

from mortar.errors import ConfigurationError
from mortar.options import QueryOptions
from mortar.query.query import Query


class QueryFactory:
    """Builds :class:`Query` objects bound to a default connection.

    Example::

        QueryFactory.set_connection(EngineConnection(engine))
        QueryFactory.build("user").where("id", 1).first()
    """

    _connection: ClassVar[Any] = None
    _options: ClassVar[QueryOptions | None] = None

    @classmethod
    def set_connection(cls, connection: Any, options: QueryOptions | None = None) -> None:
        """Set (or, with ``None``, clear) the default connection."""
        cls._connection = connection
        cls._options = options

    @classmethod
    def get_connection(cls) -> Any:
        return cls._connection

    @classmethod
    def build(cls, table: str = "", alias: str = "") -> Query:
        """Return a new query on the default connection.

        Args:
            table: Optional table; when given ``table(table, alias)`` is
                applied.
            alias: Alias for ``table``.

        Raises:
            ConfigurationError: If no default connection is set or its
                dialect has no compiler.
        """
        if cls._connection is None:
            raise ConfigurationError("No default connection; call QueryFactory.set_connection().")
        query = Query(cls._connection, cls._options)
        if table:
            query.table(table, alias)
        return query
