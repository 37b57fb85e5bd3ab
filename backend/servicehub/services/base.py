# backend/servicehub/services/base.py
"""
Base Service for the ServiceHub platform

Every service owns its unit of work:
- `with self.transaction():` commits on success and rolls back on any error
- `@BaseService.measure_operation(name)` times a public operation, feeds
  Prometheus and logs slow calls; a connection drop or timeout that
  escapes it becomes StoreUnavailableException
- `_run_side_effect()` runs email/notification work after the commit and
  never lets a failure there undo the committed change
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    DomainException,
    RepositoryException,
    ServiceException,
    StoreUnavailableException,
    is_transient_db_error,
)
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class BaseService:
    """Base class for the booking, commission, tier and reporting services."""

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit everything done inside the block, or nothing.

        Usage:
            with self.transaction():
                applied = self.booking_repository.compare_and_set_status(...)
                if not applied:
                    raise ConcurrentModificationException()

        Connection and timeout failures surface as StoreUnavailableException
        so callers can retry; other database failures become ServiceException.
        Domain exceptions raised inside the block roll back and propagate as is.
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed successfully")
        except (SQLAlchemyError, RepositoryException) as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            if is_transient_db_error(e):
                raise StoreUnavailableException() from e
            raise ServiceException(f"Database operation failed: {str(e)}") from e
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Time a service operation and record it in Prometheus.

        Usage:
            @BaseService.measure_operation("transition_booking")
            def transition(self, ...):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
                start_time = time.time()
                success = False
                error_type = None

                try:
                    result = func(self, *args, **kwargs)
                    success = True
                    return result
                except Exception as e:
                    error_type = type(e).__name__
                    # Reads outside transaction() can still hit a dropped connection
                    if not isinstance(e, DomainException) and is_transient_db_error(e):
                        raise StoreUnavailableException() from e
                    raise
                finally:
                    elapsed = time.time() - start_time

                    if elapsed > settings.slow_operation_threshold_seconds:
                        self.logger.warning(
                            f"Slow operation detected: {operation_name} took {elapsed:.2f}s",
                            extra={"operation": operation_name, "elapsed": elapsed},
                        )

                    try:
                        prometheus_metrics.record_service_operation(
                            service=self.__class__.__name__,
                            operation=operation_name,
                            duration=elapsed,
                            status="success" if success else "error",
                            error_type=error_type,
                        )
                    except Exception as metrics_error:
                        # Metrics collection must not break the operation
                        self.logger.debug(f"Metrics recording failed: {metrics_error}")

            setattr(wrapper, "_operation_name", operation_name)
            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})

    def _run_side_effect(self, label: str, func: Callable[..., Any], *args: Any) -> None:
        """
        Call an after-commit collaborator (email, notification).

        Failures are logged and swallowed; the first positional argument is
        expected to carry an `id` used in the log line.
        """
        subject_id = getattr(args[0], "id", None) if args else None
        try:
            func(*args)
        except Exception as e:
            self.logger.error(
                f"Failed to send {label} for {subject_id}: {str(e)}",
                extra={"subject_id": subject_id, "side_effect": label},
            )
