"""
Distribution Analyzer

Scans every shard of the tracking queue and reports how the request sets
are spread, and how they would be spread by the current shard mapping.

Architecture:
- Pages through each shard list in fixed windows (read only)
- Decodes each item, classifies each request, derives its sharding key
- Tallies into a DistributionStats accumulator that run() returns
- Streams a progress line per window and a summary at the end

The old distribution counts where items physically are, the new one where
compute_shard would put them today. Any difference is rebalancing drift.
"""

import hashlib
import math
import sys
import time
from enum import Enum
from typing import Callable, Dict, List, Optional, TextIO

from pydantic import BaseModel, ConfigDict, Field

from tracking_queue_app.analysis.formatter import Ordering, format_counts, format_distribution
from tracking_queue_app.analysis.sharding import ShardKeyMapper, starting_letter
from tracking_queue_app.backend.strategies import BackendStrategy
from tracking_queue_app.exceptions import DecodeError, InvalidVisitorId
from tracking_queue_app.queue.manager import QueueManager
from tracking_queue_app.queue.models import Request, RequestSet


class RequestOrigin(Enum):
    """Where the identity of a request comes from"""
    FORCED_USER_ID = "forcedUserId"
    FORCED_VISITOR_ID = "forcedVisitorId"
    VISITOR_ID_PARAM = "visitorId"
    NONE = "none"


# Checked in order, the first match wins
ORIGIN_RULES = (
    (RequestOrigin.FORCED_USER_ID, lambda request: request.get_forced_user_id()),
    (RequestOrigin.FORCED_VISITOR_ID, lambda request: request.get_forced_visitor_id()),
    (RequestOrigin.VISITOR_ID_PARAM, lambda request: request.get_param("_id")),
)


def classify_request(request: Request) -> RequestOrigin:
    """Return the single origin category of a request"""
    for origin, rule in ORIGIN_RULES:
        if rule(request):
            return origin
    return RequestOrigin.NONE


class DistributionStats(BaseModel):
    """
    Accumulator for one analyzer run.

    The origin counters (forced user id, forced visitor id, ``_id`` param)
    and the sharding-key counters (visitor id vs IP) are two independent
    dimensions. They are never reconciled with each other.
    """

    forced_user_id: int = Field(0, alias="forcedUserId")
    forced_visitor_id: int = Field(0, alias="forcedVisitorId")
    visitor_id: int = Field(0, alias="visitorId")
    invalid_requests: int = Field(0, alias="invalidRequests")
    use_visitor_id_for_sharding: int = Field(0, alias="useVisitorIdForSharding")
    use_ip_for_sharding: int = Field(0, alias="useIPForSharding")
    request_sets_with_multiple_requests: int = Field(0, alias="requestSetsWithMultipleRequests")
    request_sets_with_one_request: int = Field(0, alias="requestSetsWithOneRequest")

    old_distribution: List[int] = Field(default_factory=list)
    new_distribution: List[int] = Field(default_factory=list)
    starting_letters: Dict[str, int] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def for_shards(cls, shard_count: int) -> "DistributionStats":
        return cls(old_distribution=[0] * shard_count, new_distribution=[0] * shard_count)

    def counters(self) -> Dict[str, int]:
        """Scalar counters keyed by their display name, in display order"""
        return self.model_dump(by_alias=True, exclude={"old_distribution", "new_distribution", "starting_letters"})

    def tally_origin(self, origin: RequestOrigin) -> None:
        field = _ORIGIN_FIELDS.get(origin)
        if field:
            setattr(self, field, getattr(self, field) + 1)

    def count_letter(self, key: str) -> None:
        letter = starting_letter(key)
        self.starting_letters[letter] = self.starting_letters.get(letter, 0) + 1

    @property
    def total_requests(self) -> int:
        return sum(self.old_distribution)

    @property
    def total_request_sets(self) -> int:
        return self.request_sets_with_one_request + self.request_sets_with_multiple_requests


_ORIGIN_FIELDS = {
    RequestOrigin.FORCED_USER_ID: "forced_user_id",
    RequestOrigin.FORCED_VISITOR_ID: "forced_visitor_id",
    RequestOrigin.VISITOR_ID_PARAM: "visitor_id",
}


class DistributionAnalyzer:
    """
    Full scan of the queue with classification and drift bookkeeping.

    Features:
    - Read only (LRANGE windows, never pops)
    - Malformed items and invalid visitor ids are tallied, never fatal
    - Progress is written after every window
    """

    def __init__(
        self,
        backend: BackendStrategy,
        manager: QueueManager,
        output: Optional[TextIO] = None,
        page_size: int = 25,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize analyzer with dependencies.

        Args:
            backend: Backend the shard lists are read from
            manager: Queue manager describing the shards
            output: Stream for progress and report lines (stdout by default)
            page_size: Number of items read per window
            clock: Monotonic clock in seconds, for the elapsed time
        """
        self.backend = backend
        self.manager = manager
        self.output = output if output is not None else sys.stdout
        self.page_size = page_size
        self.clock = clock

    def run(self) -> DistributionStats:
        """Scan all shards once and return the collected stats"""
        started = self.clock()
        shard_count = self.manager.get_number_of_available_queues()
        stats = DistributionStats.for_shards(shard_count)
        mapper = ShardKeyMapper(shard_count)

        for shard in self.manager.get_all_queues():
            self._scan_shard(shard, mapper, stats)

        elapsed = self.clock() - started

        self._write("")
        letters = format_counts(stats.starting_letters, Ordering.SORTED)
        self._write(f"Starting letter analysis: {', '.join(letters)}")
        self._write(
            f"Analysed {stats.total_requests} requests within {stats.total_request_sets} "
            f"request sets in {math.ceil(elapsed)} second(s)"
        )
        return stats

    def _scan_shard(self, shard, mapper: ShardKeyMapper, stats: DistributionStats) -> None:
        key = shard.get_key()
        shard_index = shard.get_id()
        # Only used for the progress line, the list may change while we read
        reported = shard.get_number_of_request_sets_in_queue()

        start = 0
        while True:
            values = self.backend.list_range(key, start, self.page_size)
            if not values:
                break

            for raw in values:
                self._analyze_item(raw, shard_index, mapper, stats)

            start += len(values)
            self._write_progress(shard_index, mapper.shard_count, start, reported, stats)

    def _analyze_item(self, raw, shard_index: int, mapper: ShardKeyMapper, stats: DistributionStats) -> None:
        try:
            request_set = RequestSet.decode(raw)
        except DecodeError:
            stats.invalid_requests += 1
            return

        if request_set.get_number_of_requests() <= 1:
            stats.request_sets_with_one_request += 1
        else:
            stats.request_sets_with_multiple_requests += 1

        for request in request_set.get_requests():
            stats.tally_origin(classify_request(request))

            key = self._sharding_key(request, stats)
            stats.count_letter(key)
            stats.old_distribution[shard_index] += 1
            stats.new_distribution[mapper.shard_for(key)] += 1

    def _sharding_key(self, request: Request, stats: DistributionStats) -> str:
        try:
            visitor_id = request.get_visitor_id()
        except InvalidVisitorId:
            stats.invalid_requests += 1
            visitor_id = None

        if not visitor_id:
            stats.use_ip_for_sharding += 1
            return hashlib.md5(request.get_ip_string().encode("utf-8")).hexdigest()

        stats.use_visitor_id_for_sharding += 1
        return visitor_id.hex()

    def _write_progress(self, shard_index, shard_count, scanned, reported, stats: DistributionStats) -> None:
        self._write(
            f"Currently analyzing queue {shard_index + 1} of {shard_count} "
            f"({scanned} of about {reported} request sets). "
            f"Stats: {', '.join(format_counts(stats.counters()))}, "
            f"OldDistribution: {format_distribution(stats.old_distribution)}, "
            f"NewDistribution: {format_distribution(stats.new_distribution)}"
        )

    def _write(self, line: str) -> None:
        print(line, file=self.output)
