"""
Database Configuration and Connection Management
MySQL connection pool shared by every FinMate repository
"""

from mysql.connector import pooling, Error
from mysql.connector.constants import ClientFlag
import os
import logging
from contextlib import contextmanager
from typing import Any, Dict

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_POOL_SIZE = 5

class DatabaseConfig:
    """Connection settings from FINMATE_DB_* variables, overridable per instance.

    The pool is opened on the first request for a connection, so building
    a config (or importing a repository) never touches the server.
    """

    def __init__(self, **overrides):
        self.config: Dict[str, Any] = {
            'host': os.getenv('FINMATE_DB_HOST', 'localhost'),
            'port': int(os.getenv('FINMATE_DB_PORT', 3306)),
            'database': os.getenv('FINMATE_DB_NAME', 'finmate_db'),
            'user': os.getenv('FINMATE_DB_USER', 'root'),
            'password': os.getenv('FINMATE_DB_PASSWORD', ''),
            'charset': 'utf8mb4',
            'collation': 'utf8mb4_unicode_ci',
            'autocommit': False,
            # UPDATE rowcount counts matched rows, not only changed ones
            'client_flags': [ClientFlag.FOUND_ROWS],
            'pool_name': 'finmate_pool',
            'pool_size': int(os.getenv('FINMATE_DB_POOL_SIZE', DEFAULT_POOL_SIZE)),
            'pool_reset_session': True,
        }
        self.config.update(overrides)
        self.connection_pool = None

    def get_connection(self):
        if self.connection_pool is None:
            try:
                self.connection_pool = pooling.MySQLConnectionPool(**self.config)
            except Error as e:
                logger.error(f"Could not open pool {self.config['pool_name']} "
                             f"on {self.config['host']}:{self.config['port']}: {e}")
                raise
            logger.info(f"Opened connection pool {self.config['pool_name']} "
                        f"({self.config['pool_size']} connections)")

        return self.connection_pool.get_connection()

class DatabaseManager:
    """Runs single statements against pooled connections"""

    def __init__(self, db_config: DatabaseConfig = None):
        self.db_config = db_config or DatabaseConfig()

    @staticmethod
    def _release(connection):
        if connection is not None and connection.is_connected():
            connection.close()

    @contextmanager
    def get_connection(self):
        """Pooled connection, rolled back on driver errors and always returned to the pool"""
        connection = None
        try:
            connection = self.db_config.get_connection()
            yield connection
        except Error as e:
            if connection is not None:
                connection.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            self._release(connection)

    @contextmanager
    def get_transaction(self):
        """Connection whose statements commit together when the block exits cleanly"""
        with self.get_connection() as connection:
            connection.start_transaction()
            yield connection
            connection.commit()

    def execute_query(self, query: str, params: tuple = None, fetch_one: bool = False, fetch_all: bool = False):
        """Run one statement.

        Reads return a row dict (fetch_one) or a list of them (fetch_all);
        writes are committed and return the generated id.
        """
        with self.get_connection() as connection:
            cursor = connection.cursor(dictionary=True)
            try:
                cursor.execute(query, params or ())
                if fetch_one:
                    return cursor.fetchone()
                if fetch_all:
                    return cursor.fetchall()

                connection.commit()
                return cursor.lastrowid
            finally:
                cursor.close()

    def execute_write(self, query: str, params: tuple = None) -> int:
        """Run and commit an UPDATE or DELETE, returning the affected row count"""
        with self.get_connection() as connection:
            cursor = connection.cursor()
            try:
                cursor.execute(query, params or ())
                connection.commit()
                return cursor.rowcount
            finally:
                cursor.close()

# Shared manager; repositories use it unless given their own
db_manager = DatabaseManager()
