"""
Database connection utilities for the conformance grading harness.
"""

from typing import Any, Dict, List, Optional

import pyodbc

from ..errors import DatabaseConnectionError, QueryError
from ..utils.constants import DEFAULT_DRIVER, DEFAULT_PORT, DEFAULT_SCHEMA, DEFAULT_TIMEOUT
from ..utils.log import get_logger

logger = get_logger(__name__)

# SQLSTATE class 08 is "connection exception"; HYT00/HYT01 are driver timeouts
CONNECTIVITY_SQLSTATES = ("08", "HYT")


def is_connectivity_error(exc: Exception) -> bool:
    """Check whether a driver error means the handle itself is unusable."""
    if isinstance(exc, (pyodbc.OperationalError, pyodbc.InterfaceError)):
        return True
    sqlstate = exc.args[0] if exc.args else ""
    return isinstance(sqlstate, str) and sqlstate.startswith(CONNECTIVITY_SQLSTATES)


class DatabaseConnection:
    """Database connection manager with error translation.

    One instance is opened per grading run and used as a context manager, so
    the handle is released on every exit path.
    """

    def __init__(self, server: str, user: str, password: str,
                 database: str = DEFAULT_SCHEMA, port: int = DEFAULT_PORT,
                 driver: str = DEFAULT_DRIVER, timeout: int = DEFAULT_TIMEOUT):
        """Initialize database connection parameters.

        Args:
            server: Database server address
            user: Username for database connection
            password: Password for database connection
            database: Schema (database) name under test
            port: Server port
            driver: Installed ODBC driver name
            timeout: Login timeout in seconds
        """
        self.server = server
        self.user = user
        self.password = password
        self.database = database
        self.port = port
        self.driver = driver
        self.timeout = timeout
        self._connection = None

    def get_connection_string(self) -> str:
        """Generate ODBC connection string.

        Returns:
            str: ODBC connection string
        """
        return (
            f"DRIVER={{{self.driver}}};"
            f"SERVER={self.server};"
            f"PORT={self.port};"
            f"DATABASE={self.database};"
            f"UID={self.user};"
            f"PWD={self.password};"
        )

    def connect(self) -> 'DatabaseConnection':
        """Establish database connection.

        Returns:
            DatabaseConnection: self, ready for fetch()

        Raises:
            DatabaseConnectionError: If connection fails
        """
        try:
            self._connection = pyodbc.connect(self.get_connection_string(), timeout=self.timeout)
            logger.info(f"Connected to database: {self.server}:{self.port}/{self.database}")
            return self
        except pyodbc.Error as e:
            logger.error(f"Failed to connect to database {self.server}:{self.port}/{self.database}: {e}")
            raise DatabaseConnectionError(str(e)) from e

    def fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        """Execute a read query and fully consume its result set.

        Args:
            sql: Statement with '?' placeholders
            *params: Placeholder values

        Returns:
            List[Dict]: One dict per row, keyed by lower-cased column name

        Raises:
            DatabaseConnectionError: If the connection is lost or was never opened
            QueryError: If the statement itself fails
        """
        if self._connection is None:
            raise DatabaseConnectionError("Connection is not open")

        cursor = None
        try:
            cursor = self._connection.cursor()
            cursor.execute(sql, *params)
            if cursor.description is None:
                return []
            columns = [d[0].lower() for d in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]
        except pyodbc.Error as e:
            if is_connectivity_error(e):
                logger.error(f"Lost database connection: {e}")
                raise DatabaseConnectionError(str(e)) from e
            logger.debug(f"Query failed: {sql!r}: {e}")
            raise QueryError(sql, str(e)) from e
        finally:
            if cursor is not None:
                try:
                    cursor.close()
                except pyodbc.Error as e:
                    logger.debug(f"Error closing cursor: {e}")

    def close(self):
        """Close database connection."""
        if self._connection:
            try:
                self._connection.close()
                logger.info("Database connection closed")
            except pyodbc.Error as e:
                logger.warning(f"Error closing connection: {e}")
            finally:
                self._connection = None

    def __enter__(self):
        """Context manager entry."""
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


def open_connection(config, schema: Optional[str] = None) -> DatabaseConnection:
    """Build an unopened DatabaseConnection from a GradingConfig.

    Args:
        config: GradingConfig instance
        schema: Schema to connect to when the config does not name one

    Returns:
        DatabaseConnection: use with `with` to open and release it
    """
    return DatabaseConnection(
        server=config.server,
        user=config.user,
        password=config.password,
        database=config.schema or schema or DEFAULT_SCHEMA,
        port=config.port,
        driver=config.driver,
        timeout=config.timeout,
    )
