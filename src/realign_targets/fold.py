"""
Folds the per-locus events of a single partition into a boundary state
"""
from typing import Iterable, List, Optional

from .event import BoundaryState, Event
from .finalize import IntervalFinalizer
from .span import GenomicSpan


class PartitionFolder:
    """
    sliding window over at most two open events. Events are added in ascending coordinate order.
    Anything before the most recent open event that cannot be merged is closed and recorded

    Example:
        >>> folder = PartitionFolder(finalizer)
        >>> folder.extend(classifier.classify(*evidence) for evidence in source.loci('1', 1, 1000))
        >>> state = folder.state()
    """

    def __init__(self, finalizer: IntervalFinalizer):
        self.finalizer = finalizer
        self.window_size = finalizer.config.window_size
        self.left: Optional[Event] = None
        self.right: Optional[Event] = None
        self.finalized: List[GenomicSpan] = []

    @classmethod
    def resume(cls, state: BoundaryState, finalizer: IntervalFinalizer) -> 'PartitionFolder':
        """
        continue folding from a previously computed state
        """
        folder = cls(finalizer)
        folder.left = state.left
        folder.right = state.right
        folder.finalized = list(state.finalized)
        return folder

    def add(self, event: Optional[Event]):
        if event is None:
            return
        elif self.left is None:
            self.left = event
        elif self.right is None:
            if self.left.mergeable(event):
                self.left = self.left.merge(event, self.window_size)
            else:
                self.right = event
        elif self.right.mergeable(event):
            self.right = self.right.merge(event, self.window_size)
        else:
            self.finalized.extend(self.finalizer.reportable_spans(self.right))
            self.right = event

    def extend(self, events: Iterable[Optional[Event]]):
        for event in events:
            self.add(event)

    def state(self) -> BoundaryState:
        return BoundaryState(self.left, self.right, self.finalized)


def fold(state: BoundaryState, event: Optional[Event], finalizer: IntervalFinalizer) -> BoundaryState:
    """
    add a single event to a state. The input state is not modified
    """
    folder = PartitionFolder.resume(state, finalizer)
    folder.add(event)
    return folder.state()
