"""Lookup seam for materialized per-person-per-day availability.

The precomputed strategy reads records that an external write path produced
ahead of time. The engine only needs a get(person_id, day_key) lookup; the
in-memory implementation serves embedding callers and tests.
"""

from typing import Protocol

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from src.rollcall.config import get_config
from src.rollcall.errors import TransientStoreError
from src.rollcall.logging import get_logger
from src.rollcall.models import EffectiveAvailability

logger = get_logger(__name__)


class MaterializedStore(Protocol):
    """Anything that can return a precomputed availability for a person/day."""

    def get(self, person_id: str, day_key: str) -> EffectiveAvailability | None:
        """Return the stored record, or None when nothing was materialized.

        Implementations raise TransientStoreError for retryable failures and
        PermanentStoreError for the rest.
        """
        ...


class InMemoryMaterializedStore:
    """Dictionary-backed MaterializedStore keyed by (person_id, YYYY-MM-DD)."""

    def __init__(
        self, records: dict[tuple[str, str], EffectiveAvailability] | None = None
    ) -> None:
        self._records: dict[tuple[str, str], EffectiveAvailability] = dict(records or {})

    def put(self, person_id: str, day_key: str, record: EffectiveAvailability) -> None:
        self._records[(person_id, day_key)] = record

    def get(self, person_id: str, day_key: str) -> EffectiveAvailability | None:
        return self._records.get((person_id, day_key))

    def __len__(self) -> int:
        return len(self._records)


def fetch_materialized(
    store: MaterializedStore,
    person_id: str,
    day_key: str,
    *,
    attempts: int | None = None,
    wait_seconds: float | None = None,
) -> EffectiveAvailability | None:
    """Read one record, retrying transient store failures.

    Retries on TransientStoreError but fails fast on PermanentStoreError.
    Attempts and wait default to the engine configuration.

    Raises:
        TransientStoreError: If every attempt failed transiently.
        PermanentStoreError: On the first non-retryable failure.
    """
    config = get_config()
    attempts = attempts if attempts is not None else config.store_retry_attempts
    wait_seconds = (
        wait_seconds if wait_seconds is not None else config.store_retry_wait_seconds
    )

    def _log_retry(retry_state) -> None:
        logger.warning(
            "materialized_read_retry",
            person_id=person_id,
            day=day_key,
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()),
        )

    reader = retry(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(wait_seconds),
        retry=retry_if_exception_type(TransientStoreError),
        before_sleep=_log_retry,
        reraise=True,
    )(store.get)
    return reader(person_id, day_key)
