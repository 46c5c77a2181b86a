"""
Read-only diagnostics for the sharded tracking request queue.

Two tools live here:
- the distribution analyzer (full scan of every shard, sharding drift report)
- the live monitor (paginated terminal dashboard of shard depths)
"""

__version__ = "1.0.0"
