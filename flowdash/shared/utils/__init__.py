"""Shared utilities: datetime and id generators."""

from flowdash.shared.utils.datetime import (
    elapsed_ms,
    ensure_utc,
    to_epoch_ms,
    utc_now,
)
from flowdash.shared.utils.generators import generate_cuid, generate_execution_id

__all__ = [
    "elapsed_ms",
    "ensure_utc",
    "generate_cuid",
    "generate_execution_id",
    "to_epoch_ms",
    "utc_now",
]
