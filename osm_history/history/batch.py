"""
Sequential resolution of a way's node references

Nodes are resolved one at a time so every request goes through the client's
single rate limiter. Progress is exposed as an ordered stream of events.
"""

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterator, List, Optional, Sequence, Union

from loguru import logger

from ..models import ResolvedCoordinate
from .resolver import HistoryResolver


@dataclass(frozen=True)
class ProgressEvent:
    """Emitted before each node is resolved"""
    current: int  # nodes completed so far
    total: int
    point_id: str
    eta: Optional[float] = None  # seconds remaining, None until one node completed


class BatchRun:
    """
    Iterable of ProgressEvent for one batch

    Each event is yielded before its node is resolved; the node is resolved
    when iteration resumes. Once exhausted, ``coordinates`` holds every
    resolved coordinate in node-ref order (failed nodes dropped).
    """

    def __init__(
        self,
        resolver: HistoryResolver,
        point_refs: Sequence[str],
        reference_timestamp: Union[datetime, str, None],
        clock: Callable[[], float] = time.monotonic
    ):
        self.resolver = resolver
        self.point_refs = list(point_refs)
        self.reference_timestamp = reference_timestamp
        self.coordinates: List[ResolvedCoordinate] = []
        self.failed: List[str] = []
        self._clock = clock
        self._started = False

    def __iter__(self) -> Iterator[ProgressEvent]:
        if self._started:
            raise RuntimeError("BatchRun can only be iterated once")
        self._started = True

        total = len(self.point_refs)
        start_time = self._clock()

        for i, point_id in enumerate(self.point_refs):
            eta = None
            if i > 0:
                elapsed = self._clock() - start_time
                eta = (elapsed / i) * (total - i)

            yield ProgressEvent(current=i, total=total, point_id=point_id, eta=eta)

            try:
                coord = self.resolver.resolve_coordinate(point_id, self.reference_timestamp)
            except Exception as e:
                logger.error(f"Error processing node {point_id}: {e}")
                coord = None

            if coord is not None:
                self.coordinates.append(coord)
            else:
                self.failed.append(point_id)


class BatchResolver:
    """Drives the HistoryResolver across an ordered list of node references"""

    def __init__(self, resolver: HistoryResolver, clock: Callable[[], float] = time.monotonic):
        self.resolver = resolver
        self._clock = clock

    def iter_resolve(
        self,
        point_refs: Sequence[str],
        reference_timestamp: Union[datetime, str, None] = None
    ) -> BatchRun:
        """Start a batch whose progress is consumed by iterating it"""
        return BatchRun(self.resolver, point_refs, reference_timestamp, clock=self._clock)

    def resolve_all(
        self,
        point_refs: Sequence[str],
        reference_timestamp: Union[datetime, str, None] = None,
        progress_callback: Optional[Callable[[ProgressEvent], None]] = None
    ) -> List[ResolvedCoordinate]:
        """
        Resolve every node reference in order

        Args:
            point_refs: Node ids in way order
            reference_timestamp: Moment the way geometry is rebuilt for
            progress_callback: Called once per node, before it is resolved

        Returns:
            Resolved coordinates in node-ref order, nodes that failed dropped
        """
        run = self.iter_resolve(point_refs, reference_timestamp)
        for event in run:
            if progress_callback:
                progress_callback(event)

        if run.failed:
            logger.debug(f"{len(run.failed)} of {len(run.point_refs)} nodes could not be resolved")
        return run.coordinates
