"""
Offline analysis of the queue contents.
"""

from .analyzer import DistributionAnalyzer, DistributionStats, RequestOrigin, classify_request
from .formatter import Ordering, format_counts, format_distribution
from .sharding import ShardKeyMapper, compute_shard

__all__ = [
    "DistributionAnalyzer",
    "DistributionStats",
    "RequestOrigin",
    "classify_request",
    "Ordering",
    "format_counts",
    "format_distribution",
    "ShardKeyMapper",
    "compute_shard",
]
