"""
Helper classes for type hints

The protocols describe the evidence the event classifier consumes. Any object exposing the same
attributes can stand in for them (see :mod:`realign_targets.bam.pileup` and :mod:`realign_targets.known`)
"""

from typing import Dict, Iterable, Optional, Protocol, Sized


class VariantAnnotation(Protocol):
    type: str
    is_simple_insertion: bool
    end: int


class PileupElement(Protocol):
    is_del: bool
    is_before_insertion: bool
    base: Optional[str]
    quality: int
    alignment_end: int


class Pileup(Sized, Iterable[PileupElement], Protocol):
    pass


ContigLengths = Dict[str, int]
