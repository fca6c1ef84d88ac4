"""
module responsible for small utility functions and constants used throughout the realign_targets package
"""
import argparse

from mavis_config.constants import MavisNamespace

PROGNAME: str = 'realign_targets'
EXIT_OK: int = 0


def float_fraction(num):
    """
    cast input to a float

    Args:
        num: input to cast

    Returns:
        float

    Raises:
        TypeError: if the input cannot be cast to a float or the number is not between 0 and 1
    """
    try:
        num = float(num)
    except ValueError:
        raise argparse.ArgumentTypeError('Must be a value between 0 and 1')
    if num < 0 or num > 1:
        raise argparse.ArgumentTypeError('Must be a value between 0 and 1')
    return num


class EVENT_KIND(MavisNamespace):
    """
    holds controlled vocabulary for the kinds of events detected at a locus

    Attributes:
        POINT: a cluster of mismatching bases (or a known SNP)
        INDEL: an insertion or deletion
        BOTH: indel and point evidence at the same locus (or merged event)
    """

    POINT: str = 'point'
    INDEL: str = 'indel'
    BOTH: str = 'both'

    @classmethod
    def has_point(cls, kind) -> bool:
        return kind in {cls.POINT, cls.BOTH}

    @classmethod
    def has_indel(cls, kind) -> bool:
        return kind in {cls.INDEL, cls.BOTH}

    @classmethod
    def build(cls, has_indel: bool, has_point: bool) -> str:
        if has_indel:
            return cls.BOTH if has_point else cls.INDEL
        if has_point:
            return cls.POINT
        raise ValueError('an event must carry indel or point evidence')

    @classmethod
    def union(cls, first, second) -> str:
        """
        Example:
            >>> EVENT_KIND.union(EVENT_KIND.POINT, EVENT_KIND.INDEL)
            'both'
        """
        return cls.build(
            cls.has_indel(first) or cls.has_indel(second),
            cls.has_point(first) or cls.has_point(second),
        )


class VARIANT_TYPE(MavisNamespace):
    """
    holds controlled vocabulary for the type of a known variant record

    Note:
        follows the typing of variant contexts in htsjdk
    """

    NO_VARIATION: str = 'NO_VARIATION'
    SNP: str = 'SNP'
    MNP: str = 'MNP'
    INDEL: str = 'INDEL'
    SYMBOLIC: str = 'SYMBOLIC'
    MIXED: str = 'MIXED'


class OUTPUT_FORMAT(MavisNamespace):
    """
    Attributes:
        INTERVALS: one contig:start-end per line (1-based inclusive)
        BED: tab delimited, 0-based half open
    """

    INTERVALS: str = 'intervals'
    BED: str = 'bed'


class CIGAR(MavisNamespace):
    """
    Enum-like. For readable cigar values

    Note:
        descriptions are taken from the `samfile documentation <https://samtools.github.io/hts-specs/SAMv1.pdf>`_
    """

    M = 0
    I = 1
    D = 2
    N = 3
    S = 4
    H = 5
    P = 6
    EQ = 7
    X = 8


CLIPPING_STATES = {CIGAR.S, CIGAR.H}
INDEL_STATES = {CIGAR.I, CIGAR.D}

NA_MAPPING_QUALITY: int = 255
"""mapping quality value to indicate mapping was not performed/calculated"""

PLATFORM_454: str = '454'
"""substring of the read group platform (PL) marking 454 reads"""

DEFAULT_MAX_PILEUP_DEPTH: int = 100000
