"""
read filters applied before reads are added to a pileup. Each filter returns True when the read
should be ignored
"""
from typing import Callable, Dict, Iterable, List, Optional

import pysam

from ..constants import CIGAR, CLIPPING_STATES, INDEL_STATES, NA_MAPPING_QUALITY, PLATFORM_454


def mapping_quality_zero(read: pysam.AlignedSegment) -> bool:
    return read.mapping_quality == 0


def mapping_quality_unavailable(read: pysam.AlignedSegment) -> bool:
    return read.mapping_quality == NA_MAPPING_QUALITY


def bad_mate(read: pysam.AlignedSegment) -> bool:
    """
    paired reads with a mapped mate on a different contig
    """
    return read.is_paired and not read.mate_is_unmapped and read.reference_id != read.next_reference_id


def bad_cigar(read: pysam.AlignedSegment) -> bool:
    """
    reads with cigar strings the realigner cannot handle

    - clipping between aligned operations
    - fully clipped reads
    - reads starting or ending with a deletion (ignoring clipping)
    - consecutive indel operations (II, DD, ID, DI)

    Example:
        >>> read.cigarstring = '10M2I3D10M'
        >>> bad_cigar(read)
        True
    """
    cigar = read.cigartuples
    if not cigar:
        return False
    states = [state for state, _ in cigar]

    first = 0
    while first < len(states) and states[first] in CLIPPING_STATES:
        first += 1
    last = len(states) - 1
    while last >= first and states[last] in CLIPPING_STATES:
        last -= 1
    if first > last:
        return True

    unclipped = states[first:last + 1]
    if any(state in CLIPPING_STATES for state in unclipped):
        return True
    if unclipped[0] == CIGAR.D or unclipped[-1] == CIGAR.D:
        return True
    for current, following in zip(unclipped, unclipped[1:]):
        if current in INDEL_STATES and following in INDEL_STATES:
            return True
    return False


class Platform454Filter:
    """
    reads belonging to read groups sequenced on the 454 platform. 454 reads contain many false indels
    """

    def __init__(self, header: Optional[Dict] = None):
        """
        Args:
            header: the bam header (as a dictionary). Read groups are read from the RG lines
        """
        self.read_groups = set()
        for read_group in (header or {}).get('RG', []):
            if PLATFORM_454 in str(read_group.get('PL', '')).upper():
                self.read_groups.add(read_group.get('ID'))

    def __call__(self, read: pysam.AlignedSegment) -> bool:
        if not self.read_groups or not read.has_tag('RG'):
            return False
        return read.get_tag('RG') in self.read_groups


class ReadFilter:
    """
    composite filter. A read is ignored if any of the individual filters reject it
    """

    def __init__(self, filters: Iterable[Callable[[pysam.AlignedSegment], bool]] = ()):
        self.filters: List[Callable[[pysam.AlignedSegment], bool]] = list(filters)

    def __call__(self, read: pysam.AlignedSegment) -> bool:
        return any(filter_func(read) for filter_func in self.filters)

    def __len__(self):
        return len(self.filters)

    @classmethod
    def from_config(cls, config, header=None) -> 'ReadFilter':
        """
        Args:
            config (TargetConfig): decides which filters are on
            header (pysam.AlignmentHeader): the bam header, used for the read group platforms
        """
        if header is not None and not isinstance(header, dict):
            header = header.to_dict()
        filters: List[Callable[[pysam.AlignedSegment], bool]] = []
        if config.filter_mapping_quality_zero:
            filters.append(mapping_quality_zero)
        if config.filter_mapping_quality_unavailable:
            filters.append(mapping_quality_unavailable)
        if config.filter_bad_mate:
            filters.append(bad_mate)
        if config.filter_platform_454:
            platform_filter = Platform454Filter(header)
            if platform_filter.read_groups:
                filters.append(platform_filter)
        if config.filter_bad_cigar:
            filters.append(bad_cigar)
        return cls(filters)
