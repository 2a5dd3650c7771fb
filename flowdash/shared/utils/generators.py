"""ID and value generators (CUID, execution ids)."""

from datetime import datetime

from cuid2 import cuid_wrapper

from flowdash.shared.utils.datetime import to_epoch_ms, utc_now

cuid_generator = cuid_wrapper()


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier (CUID2).

    Returns:
        A new CUID string.
    """
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


def generate_execution_id(started_at: datetime | None = None) -> str:
    """Return a process-unique execution id: exec_<epoch-ms>_<cuid>."""
    started_at = started_at or utc_now()
    return f"exec_{to_epoch_ms(started_at)}_{generate_cuid()}"
