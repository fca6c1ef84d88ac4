import logging
from typing import List, Optional

from .config import TargetConfig
from .event import BoundaryState, Event
from .span import GenomicSpan
from .types import ContigLengths
from .util import logger


class IntervalFinalizer:
    """
    decides which events are reported and closes out the events still open at the end of a run
    """

    def __init__(self, config: TargetConfig, contig_lengths: Optional[ContigLengths] = None):
        """
        Args:
            config: the run settings (max_interval_size is used here)
            contig_lengths: length of each contig by name. When given, spans past the end of their contig are not reported
        """
        self.config = config
        self.contig_lengths = dict(contig_lengths or {})

    def is_reportable(self, event: Event) -> bool:
        """
        an event is reportable when its span is a valid range on the reference and is smaller than
        the maximum interval size. Oversized intervals would be too costly to realign and are dropped
        """
        span = event.span
        if span is None:
            return False
        if span.start < 1 or span.end < span.start:
            return False
        length = self.contig_lengths.get(span.chr)
        if length is not None and span.end > length:
            logger.debug(f'dropping interval past the end of the contig: {span}')
            return False
        if span.end - span.start >= self.config.max_interval_size:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    f'dropping oversized interval: {span} ({span.end - span.start} >= {self.config.max_interval_size})'
                )
            return False
        return True

    def reportable_spans(self, *events: Optional[Event]) -> List[GenomicSpan]:
        return [e.span for e in events if e is not None and self.is_reportable(e)]

    def finalize(self, state: BoundaryState) -> BoundaryState:
        """
        close the open events of the final state. Finalizing a state with no open events returns an
        equivalent state
        """
        closed = self.reportable_spans(state.left, state.right)
        return BoundaryState(finalized=state.finalized + tuple(closed))

    def targets(self, state: BoundaryState) -> List[GenomicSpan]:
        """
        Returns:
            the final ascending, de-duplicated target intervals
        """
        return list(self.finalize(state).finalized)
