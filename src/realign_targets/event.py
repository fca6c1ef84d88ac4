"""
The event data model shared by the classifier, the partition folder and the boundary combiner
"""
from typing import Iterable, Optional, Tuple

from .constants import EVENT_KIND
from .span import GenomicSpan, merge_sorted_unique


class Event:
    """
    An indel and/or mismatch cluster detected at (or merged across) one or more loci

    Events are never modified in place. Merging returns a new event so that partial results can be
    combined in any grouping without interfering with one another
    """

    locus: GenomicSpan
    kind: str
    start: Optional[int]
    end: Optional[int]
    horizon: int
    points: Tuple[int, ...]

    def __init__(
        self,
        locus: GenomicSpan,
        horizon: int,
        kind: str,
        start: Optional[int] = None,
        end: Optional[int] = None,
        points: Iterable[int] = (),
    ):
        """
        Args:
            locus: the locus which first produced this event. Its start is used to test if the event can be merged onto an earlier one
            horizon: the furthest downstream position reached by any read or known variant involved in this event
            kind (EVENT_KIND): the kind of evidence
            start: start of the event span (None until the span is known)
            end: end of the event span (None until the span is known)
            points: positions of the point (mismatch/SNP) loci contributing to this event
        """
        self.locus = locus
        self.horizon = int(horizon)
        self.kind = EVENT_KIND.enforce(kind)
        self.start = start
        self.end = end
        self.points = tuple(points)
        if (start is None) != (end is None):
            raise ValueError('event span start and end must both be given or both be omitted', start, end)
        if start is not None and start > end:
            raise ValueError('event span start > end is not allowed', start, end)

    @classmethod
    def from_locus(cls, locus: GenomicSpan, horizon: int, kind: str) -> 'Event':
        """
        create the event for a single locus. Point-only events have no span until they are merged
        with a nearby point event
        """
        start, end = (locus.start, locus.end) if EVENT_KIND.has_indel(kind) else (None, None)
        points = (locus.start,) if EVENT_KIND.has_point(kind) else ()
        return cls(locus, horizon, kind, start=start, end=end, points=points)

    @property
    def span(self) -> Optional[GenomicSpan]:
        if self.start is None:
            return None
        return GenomicSpan(self.locus.chr, self.start, self.end, chr_index=self.locus.chr_index)

    @property
    def key(self):
        return (self.locus.key, self.kind, self.start, self.end, self.horizon, self.points)

    def __eq__(self, other):
        if not isinstance(other, Event):
            return False
        return self.key == other.key

    def __hash__(self):
        return hash(self.key)

    def __repr__(self):
        span = '{}-{}'.format(self.start, self.end) if self.start is not None else '?'
        return 'Event({}:{} {}, horizon={}, points={})'.format(
            self.locus.chr, span, self.kind, self.horizon, list(self.points)
        )

    def mergeable(self, other: 'Event') -> bool:
        """
        checks if a later event can be merged onto this one. Events merge when they are on the same
        contig and the later event starts at or before the horizon of this event

        Example:
            >>> first = Event.from_locus(GenomicSpan('1', 100), 120, EVENT_KIND.INDEL)
            >>> first.mergeable(Event.from_locus(GenomicSpan('1', 120), 150, EVENT_KIND.INDEL))
            True
            >>> first.mergeable(Event.from_locus(GenomicSpan('1', 121), 150, EVENT_KIND.INDEL))
            False
        """
        return self.locus.same_contig(other.locus) and self.horizon >= other.locus.start

    def merge(self, other: 'Event', window_size: int) -> 'Event':
        """
        merge a later event onto this one

        The span of the later event (indel loci and any point clusters it already formed) always
        extends the span. The gap between the last point of this event and the first point of the
        later event is only added when it is smaller than the window. The horizon is always taken
        from the later event

        Merging a run of events in one step gives the same event as merging them one at a time, so
        partial results can be merged in any grouping

        Args:
            other: the event to merge. Must follow this event on the reference
            window_size: points closer than this many bases are clustered together

        Returns:
            Event: a new event, neither input is modified

        Example:
            >>> first = Event.from_locus(GenomicSpan('1', 100), 150, EVENT_KIND.POINT)
            >>> first.merge(Event.from_locus(GenomicSpan('1', 105), 160, EVENT_KIND.POINT), 10).span
            GenomicSpan(1:100-105)
        """
        start, end = self.start, self.end

        if other.start is not None:
            start = other.start if start is None else min(start, other.start)
            end = other.end if end is None else max(end, other.end)

        if self.points and other.points:
            last, first = self.points[-1], other.points[0]
            if first - last < window_size:
                start = last if start is None else min(start, last)
                end = first if end is None else max(end, first)

        return Event(
            self.locus,
            other.horizon,
            EVENT_KIND.union(self.kind, other.kind),
            start=start,
            end=end,
            points=self.points + other.points,
        )


class BoundaryState:
    """
    The accumulator for folding the events of a partition. Holds at most two open events and the
    intervals which are already closed

    Attributes:
        left: the earliest open event. It stays open because it may still merge with an earlier partition
        right: the latest open event. Only set once left is set
        finalized: ascending and de-duplicated intervals that can no longer change
    """

    left: Optional[Event]
    right: Optional[Event]
    finalized: Tuple[GenomicSpan, ...]

    def __init__(
        self,
        left: Optional[Event] = None,
        right: Optional[Event] = None,
        finalized: Iterable[GenomicSpan] = (),
    ):
        if right is not None and left is None:
            raise ValueError('the right event of a boundary state cannot be set without the left event')
        self.left = left
        self.right = right
        self.finalized = merge_sorted_unique(finalized)

    @property
    def open_events(self) -> Tuple[Event, ...]:
        return tuple(e for e in (self.left, self.right) if e is not None)

    @property
    def is_empty(self) -> bool:
        return self.left is None and not self.finalized

    def __eq__(self, other):
        if not isinstance(other, BoundaryState):
            return False
        return (self.left, self.right, self.finalized) == (other.left, other.right, other.finalized)

    def __repr__(self):
        return 'BoundaryState(left={}, right={}, finalized={})'.format(
            self.left, self.right, list(self.finalized)
        )
