from typing import Iterable, Optional

from .config import TargetConfig
from .constants import EVENT_KIND, VARIANT_TYPE
from .event import Event
from .span import GenomicSpan
from .types import Pileup, VariantAnnotation


class EventClassifier:
    """
    decides, for a single locus, whether the evidence is an indel event, a point (mismatch) event,
    both, or nothing at all
    """

    def __init__(self, config: TargetConfig):
        self.config = config
        self.detect_mismatches = config.detect_mismatches

    def classify(
        self,
        locus: GenomicSpan,
        known_variants: Iterable[VariantAnnotation],
        pileup: Pileup,
        reference_base: Optional[str] = None,
    ) -> Optional[Event]:
        """
        Args:
            locus: the reference position being classified
            known_variants: the known variants overlapping the locus
            pileup: the bases aligned at the locus
            reference_base: the reference base at the locus. Only required for mismatch detection

        Returns:
            Event: the event at this locus or None when there is no (usable) evidence
        """
        has_indel = False
        has_insertion = False
        has_point = False
        horizon = None

        for variant in known_variants:
            if variant.type == VARIANT_TYPE.INDEL:
                has_indel = True
                if variant.is_simple_insertion:
                    has_insertion = True
            elif variant.type == VARIANT_TYPE.SNP:
                has_point = True
            elif variant.type == VARIANT_TYPE.MIXED:
                has_point = True
                has_indel = True
                if variant.is_simple_insertion:
                    has_insertion = True
            if has_indel:
                horizon = variant.end if horizon is None else max(horizon, variant.end)

        mismatch_qualities = 0
        total_qualities = 0
        reference_base = reference_base.upper() if reference_base else None

        for element in pileup:
            # how far do the reads extend
            if horizon is None or element.alignment_end > horizon:
                horizon = element.alignment_end

            if element.is_del or element.is_before_insertion:
                has_indel = True
                if element.is_before_insertion:
                    has_insertion = True
            elif self.detect_mismatches:
                if element.base is None or element.base.upper() != reference_base:
                    mismatch_qualities += element.quality
                total_qualities += element.quality

        if (
            self.detect_mismatches
            and len(pileup) >= self.config.min_reads_at_locus
            and total_qualities > 0
            and mismatch_qualities / total_qualities >= self.config.mismatch_fraction
        ):
            has_point = True

        if not has_indel and not has_point:
            return None

        # no reads or known indels anchor the event
        if horizon is None:
            return None

        if has_insertion:
            locus = GenomicSpan(locus.chr, locus.start, locus.start + 1, chr_index=locus.chr_index)

        return Event.from_locus(locus, horizon, EVENT_KIND.build(has_indel, has_point))
