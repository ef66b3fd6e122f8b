"""Error hierarchy for the availability engine.

The computation itself never raises for data-quality reasons: malformed records
are skipped and missing data resolves to defaults. Errors only surface at the
collaborator seams, i.e. reading precomputed records and assembling snapshot
batches.

The store errors enable tenacity retry decorators to classify transient read
failures (should retry) vs permanent failures (should not retry):

    @retry(retry=retry_if_exception_type(TransientStoreError), stop=stop_after_attempt(3))
    def fetch(person_id: str, day: str):
        ...
"""


class RollcallError(Exception):
    """Base exception for all engine errors."""

    pass


class StoreError(RollcallError):
    """Base exception for materialized-record store failures."""

    pass


class TransientStoreError(StoreError):
    """Temporary failure reading a materialized record that may succeed on retry.

    Examples: connection resets, statement timeouts, 503 from a data API.
    """

    pass


class PermanentStoreError(StoreError):
    """Store failure that won't succeed on retry.

    Examples: missing table, permission denied, undecodable stored payload.
    """

    pass


class SnapshotError(RollcallError):
    """A snapshot batch was assembled from inconsistent records.

    Raised when records with different captured_at timestamps are grouped into
    one batch. A batch either exists in full or not at all.
    """

    pass
