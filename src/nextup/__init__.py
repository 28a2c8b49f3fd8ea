"""nextup - task and calendar aggregation with a manual-order overlay."""

__version__ = "0.1.0"
