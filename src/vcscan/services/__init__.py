"""
Services Layer - traversal, status execution and result aggregation.
"""

from vcscan.services.error_propagator import ErrorPropagator
from vcscan.services.result_aggregator import AggregationMode, DirtyCounter, ResultAggregator
from vcscan.services.scan_service import ScanService, ScanSummary, run_scan
from vcscan.services.status_stage import StatusStage
from vcscan.services.traversal_engine import (
    RecursiveTraversal,
    TraversalEngine,
    TraversalStats,
    WorkerPoolTraversal,
)
from vcscan.services.work_queue import WorkQueue

__all__ = [
    "AggregationMode",
    "DirtyCounter",
    "ErrorPropagator",
    "RecursiveTraversal",
    "ResultAggregator",
    "ScanService",
    "ScanSummary",
    "StatusStage",
    "TraversalEngine",
    "TraversalStats",
    "WorkQueue",
    "WorkerPoolTraversal",
    "run_scan",
]
