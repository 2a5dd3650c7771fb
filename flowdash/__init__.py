"""flowdash: workflow automation core (aggregates, execution pipeline, handlers)."""

__version__ = "1.0.0"
