"""
Base Repository - shared data access for every collection

Subclasses declare a ResourceSchema (table + public fields) and a row mapper;
this class supplies the paged listing, lookup by id, partial update and
delete that all collections share.
"""
import json
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from psycopg2.extras import Json

from storefront.core.database import Database
from storefront.core.query import ListQuery, Page, ResourceSchema

logger = logging.getLogger(__name__)


def _json_default(value: Any):
    if isinstance(value, Decimal):
        return float(value)
    return str(value)


def to_json(value: Any) -> Json:
    """Adapt a dict/list for a JSONB column (Decimals become JSON numbers)"""
    return Json(value, dumps=lambda obj: json.dumps(obj, default=_json_default))


class BaseRepository:
    """
    Common CRUD helpers over one table

    Subclasses set ``schema`` and implement ``_map_row``.
    """

    schema: ResourceSchema
    json_columns: Iterable[str] = ()

    def __init__(self, db: Database):
        self.db = db

    @property
    def table(self) -> str:
        return self.schema.table

    @property
    def returning(self) -> str:
        return ", ".join(self.schema.columns)

    def _map_row(self, row: dict):
        raise NotImplementedError

    def _serialize_row(self, row: dict, projected: bool) -> dict:
        """Full rows go through the domain model; projected rows are returned as selected"""
        if projected:
            return dict(row)
        return self._map_row(row).to_dict()

    def _adapt(self, column: str, value: Any) -> Any:
        if column in self.json_columns and value is not None:
            return to_json(value)
        return value

    def find_page(
        self,
        query: ListQuery,
        conditions: List[str] = None,
        params: List[Any] = None
    ) -> Page:
        """
        Run a list query against the table

        Args:
            query: filter/sort/projection/pagination plan
            conditions: extra SQL conditions ANDed with the query filters
            params: parameters for the extra conditions

        Returns:
            Page with the requested slice and the total of the filtered set
        """
        where, where_params = query.where_clause(conditions, params)

        with self.db.cursor() as cursor:
            cursor.execute(
                f"SELECT COUNT(*) AS total FROM {self.table} WHERE {where}",
                where_params,
            )
            total = cursor.fetchone()["total"]

            cursor.execute(
                f"""
                SELECT {query.select_clause()}
                FROM {self.table}
                WHERE {where}
                ORDER BY {query.order_clause()}
                LIMIT %s OFFSET %s
                """,
                where_params + [query.limit, query.start],
            )
            rows = cursor.fetchall()

        projected = query.fields is not None
        items = [self._serialize_row(row, projected) for row in rows]
        return Page(items=items, total=total, page=query.page, limit=query.limit)

    def _find_row(self, record_id) -> Optional[dict]:
        with self.db.cursor() as cursor:
            cursor.execute(
                f"SELECT {self.returning} FROM {self.table} WHERE id = %s",
                (record_id,),
            )
            return cursor.fetchone()

    def find_by_id(self, record_id):
        """
        Find one record by id

        Returns:
            Domain model or None if not found
        """
        row = self._find_row(record_id)
        return self._map_row(row) if row else None

    def _insert(self, values: Dict[str, Any]):
        columns = list(values)
        placeholders = ", ".join(["%s"] * len(columns))
        params = [self._adapt(column, values[column]) for column in columns]

        with self.db.cursor() as cursor:
            cursor.execute(
                f"""
                INSERT INTO {self.table} ({", ".join(columns)})
                VALUES ({placeholders})
                RETURNING {self.returning}
                """,
                params,
            )
            row = cursor.fetchone()

        logger.info(f"Created {self.table} record {row['id']}")
        return self._map_row(row)

    def _update(self, record_id, changes: Dict[str, Any], merge: Iterable[str] = ()):
        """
        Patch the supplied columns only

        Args:
            record_id: id of the record
            changes: column -> new value; columns absent here are untouched
            merge: JSONB columns whose new value is merged into the stored document

        Returns:
            Updated domain model or None if not found
        """
        if not changes:
            return self.find_by_id(record_id)

        assignments = []
        params = []
        for column, value in changes.items():
            if column in merge:
                assignments.append(f"{column} = {column} || %s")
            else:
                assignments.append(f"{column} = %s")
            params.append(self._adapt(column, value))
        assignments.append("updated_at = NOW()")
        params.append(record_id)

        with self.db.cursor() as cursor:
            cursor.execute(
                f"""
                UPDATE {self.table}
                SET {", ".join(assignments)}
                WHERE id = %s
                RETURNING {self.returning}
                """,
                params,
            )
            row = cursor.fetchone()

        return self._map_row(row) if row else None

    def delete(self, record_id):
        """
        Delete one record

        Returns:
            Snapshot of the deleted record, None if it did not exist
        """
        with self.db.cursor() as cursor:
            cursor.execute(
                f"DELETE FROM {self.table} WHERE id = %s RETURNING {self.returning}",
                (record_id,),
            )
            row = cursor.fetchone()

        if not row:
            return None
        logger.info(f"Deleted {self.table} record {record_id}")
        return self._map_row(row)
