"""
Combines the boundary states of partitions into the state of their concatenation
"""
from functools import reduce
from typing import List, Sequence

from .event import BoundaryState
from .finalize import IntervalFinalizer


class BoundaryCombiner:
    """
    associative combination of boundary states. The left-hand state must cover coordinates
    strictly before the right-hand state but the states may be grouped in any way
    """

    def __init__(self, finalizer: IntervalFinalizer):
        self.finalizer = finalizer
        self.window_size = finalizer.config.window_size

    def combine(self, lhs: BoundaryState, rhs: BoundaryState) -> BoundaryState:
        """
        Args:
            lhs: state of the earlier partition(s)
            rhs: state of the later partition(s)

        Returns:
            BoundaryState: a new state, neither input is modified
        """
        if lhs.left is None:
            return BoundaryState(rhs.left, rhs.right, lhs.finalized + rhs.finalized)
        elif rhs.left is None:
            return BoundaryState(lhs.left, lhs.right, lhs.finalized + rhs.finalized)

        closed = []
        if lhs.right is None:
            # lhs.left always stays open, it may still merge with an earlier partition
            if lhs.left.mergeable(rhs.left):
                left = lhs.left.merge(rhs.left, self.window_size)
                right = rhs.right
            elif rhs.right is None:
                left, right = lhs.left, rhs.left
            else:
                closed.extend(self.finalizer.reportable_spans(rhs.left))
                left, right = lhs.left, rhs.right
        elif rhs.right is None:
            left = lhs.left
            if lhs.right.mergeable(rhs.left):
                # nothing follows in rhs so the merged event may still grow
                right = lhs.right.merge(rhs.left, self.window_size)
            else:
                closed.extend(self.finalizer.reportable_spans(lhs.right))
                right = rhs.left
        else:
            if lhs.right.mergeable(rhs.left):
                closed.extend(
                    self.finalizer.reportable_spans(lhs.right.merge(rhs.left, self.window_size))
                )
            else:
                closed.extend(self.finalizer.reportable_spans(lhs.right, rhs.left))
            left, right = lhs.left, rhs.right

        return BoundaryState(left, right, lhs.finalized + rhs.finalized + tuple(closed))

    def __call__(self, lhs: BoundaryState, rhs: BoundaryState) -> BoundaryState:
        return self.combine(lhs, rhs)


def sequential_reduce(states: Sequence[BoundaryState], combiner: BoundaryCombiner) -> BoundaryState:
    """
    left fold of the states, in order
    """
    return reduce(combiner.combine, states, BoundaryState())


def tree_reduce(states: Sequence[BoundaryState], combiner: BoundaryCombiner) -> BoundaryState:
    """
    combine neighbouring states pairwise, level by level, until a single state remains

    Example:
        >>> tree_reduce([a, b, c, d, e], combiner)  # ((a + b) + (c + d)) + e
    """
    level: List[BoundaryState] = list(states)
    if not level:
        return BoundaryState()
    while len(level) > 1:
        paired = [combiner.combine(level[i], level[i + 1]) for i in range(0, len(level) - 1, 2)]
        if len(level) % 2:
            paired.append(level[-1])
        level = paired
    return level[0]
