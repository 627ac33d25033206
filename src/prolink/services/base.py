"""BaseService: shared foundation for prolink services.

Every service receives a :class:`Vault` at construction time. Writers own
their transaction boundaries via ``self._vault.transaction()``; readers
use ``self._vault.snapshot()``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeAlias

from sqlalchemy.exc import IntegrityError, OperationalError

from prolink.domain.errors import InvariantViolationError, NetworkError
from prolink.services.result import ServiceError, ServiceResult
from prolink.services.telemetry import get_current_span, trace_span

if TYPE_CHECKING:
    from prolink.config.models import NetworkConfig
    from prolink.infrastructure.vault import Vault, VaultTransaction

logger = logging.getLogger(__name__)

# Lock contention and the pending-pair unique index raced by another process.
_TRANSIENT_ERRORS = (OperationalError, IntegrityError)

UnitOfWork: TypeAlias = "Callable[[VaultTransaction], dict[str, Any]]"


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class ProfileService(BaseService):
            def register(self, user_id: str, ...) -> ServiceResult:
                with self._vault.transaction() as txn:
                    ...
    """

    def __init__(self, vault: Vault) -> None:
        self._vault = vault

    @property
    def _network(self) -> NetworkConfig:
        return self._vault.settings.network

    @staticmethod
    def _failure(op: str, exc: NetworkError) -> ServiceResult:
        if isinstance(exc, InvariantViolationError):
            logger.warning("%s rejected: %s", op, exc.message)
        else:
            logger.debug("%s failed with %s: %s", op, exc.code, exc.message)
        return ServiceResult.failure(op, exc)

    def _run_unit_of_work(self, op: str, work: UnitOfWork) -> ServiceResult:
        """Run *work* in one transaction, retrying transient storage errors.

        Each retry rolls back and re-runs *work* from the start, so it
        decides on fresh state. Exhausted retries yield ``STORAGE_CONFLICT``.
        """
        cfg = self._network
        attempts = cfg.max_retries + 1
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                with trace_span("unit_of_work"), self._vault.transaction() as txn:
                    data = work(txn)
            except NetworkError as exc:
                return self._failure(op, exc)
            except _TRANSIENT_ERRORS as exc:
                last_error = exc
                logger.warning(
                    "Transient storage error in %s (attempt %d/%d): %s",
                    op,
                    attempt,
                    attempts,
                    exc.__class__.__name__,
                )
                if attempt < attempts and cfg.retry_backoff_ms:
                    time.sleep(cfg.retry_backoff_ms * attempt / 1000)
                continue

            span = get_current_span()
            if span is not None:
                span.annotate("attempts", attempt)
            return ServiceResult(ok=True, op=op, data=data)

        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(
                code="STORAGE_CONFLICT",
                message=f"Storage stayed busy after {attempts} attempts",
                detail={"attempts": attempts, "reason": str(last_error)},
            ),
        )
