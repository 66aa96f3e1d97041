"""
Base Repository Class
Keyed access to tables whose rows belong to one user
"""

from abc import ABC
from datetime import date
from typing import List, Optional, Dict, Any
import logging
from mysql.connector import Error

from db.database import db_manager
from utils.exceptions import DatabaseException, ValidationException

logger = logging.getLogger(__name__)

class BaseRepository(ABC):
    """Every statement built here filters on user_id; a row id alone never reaches another user's data"""

    def __init__(self, table_name: str, primary_key: str = 'id', db=None):
        self.table_name = table_name
        self.primary_key = primary_key
        self.db = db or db_manager

    def _run(self, action: str, query: str, params: tuple, **fetch):
        try:
            return self.db.execute_query(query, params, **fetch)
        except Error as e:
            logger.error(f"{self.table_name}: {action} failed: {e}")
            raise DatabaseException(f"Failed to {action}: {str(e)}")

    def _write(self, action: str, query: str, params: tuple) -> bool:
        try:
            changed = self.db.execute_write(query, params)
        except Error as e:
            logger.error(f"{self.table_name}: {action} failed: {e}")
            raise DatabaseException(f"Failed to {action}: {str(e)}")
        return bool(changed)

    @property
    def _owned_row(self) -> str:
        return f"{self.primary_key} = %s AND user_id = %s"

    def create(self, data: Dict[str, Any]) -> int:
        """Insert the non-null columns of data and return the new row id"""
        row = {column: value for column, value in data.items()
               if value is not None and column != self.primary_key}
        if not row:
            raise ValidationException("No data provided for creation")

        query = (f"INSERT INTO {self.table_name} ({', '.join(row)}) "
                 f"VALUES ({', '.join(['%s'] * len(row))})")
        new_id = self._run("create record", query, tuple(row.values()))
        logger.info(f"{self.table_name}: inserted row {new_id}")
        return new_id

    def find_by_id(self, record_id: int, user_id: str) -> Optional[Dict[str, Any]]:
        query = f"SELECT * FROM {self.table_name} WHERE {self._owned_row}"
        return self._run("find record", query, (record_id, user_id), fetch_one=True)

    def find_by_user(self, user_id: str, order_by: str = None, descending: bool = True,
                     date_field: str = None, start_date: date = None, end_date: date = None,
                     limit: int = None) -> List[Dict[str, Any]]:
        """Rows owned by user_id.

        With date_field set, start_date and end_date bound it inclusively;
        either may be omitted.
        """
        clauses = ["user_id = %s"]
        params: List[Any] = [user_id]
        if date_field:
            for bound, operator in ((start_date, '>='), (end_date, '<=')):
                if bound:
                    clauses.append(f"{date_field} {operator} %s")
                    params.append(bound)

        query = f"SELECT * FROM {self.table_name} WHERE {' AND '.join(clauses)}"
        if order_by:
            query += f" ORDER BY {order_by} {'DESC' if descending else 'ASC'}"
        if limit:
            query += " LIMIT %s"
            params.append(limit)

        return self._run("find records", query, tuple(params), fetch_all=True) or []

    def update(self, record_id: int, user_id: str, data: Dict[str, Any]) -> bool:
        """Set the non-null columns of data; False when nothing was changed"""
        changes = {column: value for column, value in data.items()
                   if value is not None and column not in (self.primary_key, 'user_id')}
        if not changes:
            return False

        assignments = ', '.join(f"{column} = %s" for column in changes)
        query = f"UPDATE {self.table_name} SET {assignments} WHERE {self._owned_row}"
        updated = self._write("update record", query, tuple(changes.values()) + (record_id, user_id))
        if updated:
            logger.info(f"{self.table_name}: updated row {record_id}")
        return updated

    def delete(self, record_id: int, user_id: str) -> bool:
        """Remove one of the user's rows; False when no such row exists"""
        query = f"DELETE FROM {self.table_name} WHERE {self._owned_row}"
        deleted = self._write("delete record", query, (record_id, user_id))
        if deleted:
            logger.info(f"{self.table_name}: deleted row {record_id}")
        return deleted

    def find_by_field(self, user_id: str, field_name: str, field_value: Any) -> List[Dict[str, Any]]:
        query = f"SELECT * FROM {self.table_name} WHERE user_id = %s AND {field_name} = %s"
        return self._run(f"find records by {field_name}", query, (user_id, field_value), fetch_all=True) or []

    def count(self, user_id: str) -> int:
        query = f"SELECT COUNT(*) AS total FROM {self.table_name} WHERE user_id = %s"
        row = self._run("count records", query, (user_id,), fetch_one=True)
        return row['total'] if row else 0

    def exists(self, record_id: int, user_id: str) -> bool:
        query = f"SELECT 1 FROM {self.table_name} WHERE {self._owned_row} LIMIT 1"
        return self._run("check existence", query, (record_id, user_id), fetch_one=True) is not None
