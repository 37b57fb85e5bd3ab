# backend/servicehub/repositories/base_repository.py
"""
Base Repository for the ServiceHub platform

Every repository shares:
- Primary-key reads, with optional eager loading of satellite tables
- Guarded (compare-and-set) UPDATEs that report whether a row matched
- Append-only inserts for audit and history rows
- SQLAlchemy errors wrapped as RepositoryException, or StoreUnavailableException
  when the connection dropped or timed out

Repositories never commit. They flush so generated ids and constraint
violations surface early, and leave commit/rollback to the service layer.
"""

import logging
from typing import Any, Dict, Generic, List, NoReturn, Optional, Type, TypeVar

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import (
    RepositoryException,
    StoreUnavailableException,
    is_transient_db_error,
)

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Data access for one aggregate root.

    Attributes:
        db: SQLAlchemy session owned by the calling service
        model: SQLAlchemy model class of the aggregate root
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    def get_by_id(self, id: str, load_relationships: bool = True) -> Optional[T]:
        try:
            query = self.db.query(self.model).filter(self.model.id == id)
            if load_relationships:
                query = self._apply_eager_loading(query)
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {self.model.__name__} by id {id}: {str(e)}")
            self._raise_store_error(e, f"Failed to retrieve {self.model.__name__}: {str(e)}")

    def get_fresh(self, id: str) -> Optional[T]:
        """
        Re-read an entity, overwriting any copy already in the identity map.

        Guarded UPDATEs bypass the session, so the cached instance is stale after one.
        """
        try:
            query = self._apply_eager_loading(
                self.db.query(self.model).filter(self.model.id == id)
            ).populate_existing()
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error reloading {self.model.__name__} {id}: {str(e)}")
            self._raise_store_error(e, f"Failed to reload {self.model.__name__}: {str(e)}")

    def create(self, **kwargs: Any) -> T:
        """Insert a new root row. Does NOT commit."""
        try:
            entity = self.model(**kwargs)
            self.db.add(entity)
            self.db.flush()  # Get ID without committing
            return entity
        except IntegrityError as exc:
            self.logger.error("Integrity error creating %s: %s", self.model.__name__, exc)
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating {self.model.__name__}: {str(e)}")
            self._raise_store_error(e, f"Failed to create {self.model.__name__}: {str(e)}")

    def exists(self, **kwargs: Any) -> bool:
        try:
            return self.db.query(self.model.id).filter_by(**kwargs).first() is not None
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking {self.model.__name__} existence: {str(e)}")
            self._raise_store_error(e, f"Failed to check existence: {str(e)}")

    def count(self, **kwargs: Any) -> int:
        try:
            return self.db.query(self.model).filter_by(**kwargs).count()
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting {self.model.__name__} rows: {str(e)}")
            self._raise_store_error(e, f"Failed to count records: {str(e)}")

    # Protected helpers for subclasses

    def _raise_store_error(self, error: SQLAlchemyError, message: str) -> NoReturn:
        """Connection drops and timeouts are retryable; anything else is a repository failure."""
        if is_transient_db_error(error):
            self.logger.warning(f"Transient database failure on {self.model.__name__}: {error}")
            raise StoreUnavailableException() from error
        raise RepositoryException(message) from error

    def _apply_eager_loading(self, query: Query) -> Query:
        """Override to eager load the aggregate's satellite tables."""
        return query

    def _guarded_update(self, id: str, guard: Any, values: Dict[str, Any]) -> bool:
        """
        UPDATE the row with primary key `id` only while `guard` still holds.

        Returns False when no row matched: either the row is gone or another
        writer changed the guarded column first. The identity map is not
        synchronised; callers re-read with get_fresh().
        """
        try:
            stmt = (
                update(self.model)
                .where(self.model.id == id)
                .where(guard)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            result = self.db.execute(stmt)
            self.db.flush()
            return bool(result.rowcount)
        except SQLAlchemyError as e:
            self.logger.error(f"Guarded update failed for {self.model.__name__} {id}: {str(e)}")
            self._raise_store_error(e, f"Failed to update {self.model.__name__}: {str(e)}")

    def _append(self, row: R) -> R:
        """Insert an append-only row (history, audit log, notes)."""
        try:
            self.db.add(row)
            self.db.flush()
            return row
        except SQLAlchemyError as e:
            self.logger.error(f"Error inserting {type(row).__name__}: {str(e)}")
            self._raise_store_error(e, f"Failed to insert {type(row).__name__}: {str(e)}")

    def _execute_query(self, query: Query) -> List[Any]:
        try:
            return query.all()
        except SQLAlchemyError as e:
            self.logger.error(f"Query execution error: {str(e)}")
            self._raise_store_error(e, f"Query failed: {str(e)}")

    def _execute_scalar(self, query: Query) -> Any:
        try:
            return query.scalar()
        except SQLAlchemyError as e:
            self.logger.error(f"Scalar query error: {str(e)}")
            self._raise_store_error(e, f"Scalar query failed: {str(e)}")
