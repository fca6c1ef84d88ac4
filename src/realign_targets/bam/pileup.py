import atexit
import re
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

import pysam

from ..constants import DEFAULT_MAX_PILEUP_DEPTH
from ..known import KnownVariant, KnownVariantIndex
from ..span import GenomicSpan
from .filters import ReadFilter


class PileupElement:
    """
    a single read aligned over a locus
    """

    __slots__ = ['base', 'quality', 'is_del', 'is_before_insertion', 'alignment_end']

    def __init__(
        self,
        base: Optional[str],
        quality: int,
        is_del: bool = False,
        is_before_insertion: bool = False,
        alignment_end: int = 0,
    ):
        """
        Args:
            base: the read base aligned to the locus (None for deletions)
            quality: the base quality
            is_del: the read has a deletion at this locus
            is_before_insertion: the read has an insertion immediately after this locus
            alignment_end: the last reference position aligned by the read (1-based)
        """
        self.base = base
        self.quality = quality
        self.is_del = is_del
        self.is_before_insertion = is_before_insertion
        self.alignment_end = alignment_end

    @classmethod
    def from_pileup_read(cls, pileup_read: pysam.PileupRead, with_bases: bool = True) -> 'PileupElement':
        """
        Args:
            pileup_read: the pysam pileup read
            with_bases: collect the base and quality. Only needed for mismatch detection
        """
        read = pileup_read.alignment
        base = None
        quality = 0
        qpos = pileup_read.query_position
        if with_bases and not pileup_read.is_del and qpos is not None:
            if read.query_sequence:
                base = read.query_sequence[qpos]
            qualities = read.query_qualities
            if qualities is not None:
                quality = qualities[qpos]
        return cls(
            base,
            quality,
            is_del=bool(pileup_read.is_del),
            is_before_insertion=pileup_read.indel > 0,
            # pysam ends are 0-based exclusive, the same value as the 1-based inclusive end
            alignment_end=read.reference_end,
        )

    def __repr__(self):
        return 'PileupElement(base={}, quality={}, is_del={}, is_before_insertion={}, alignment_end={})'.format(
            self.base, self.quality, self.is_del, self.is_before_insertion, self.alignment_end
        )


class LocusEvidence(NamedTuple):
    locus: GenomicSpan
    known_variants: List[KnownVariant]
    pileup: List[PileupElement]
    reference_base: Optional[str]


class BamEvidenceSource:
    """
    supplies the evidence at each locus of a region, in ascending order, from an indexed bam file,
    an optional reference fasta and optional known variants
    """

    def __init__(
        self,
        bam_file,
        reference_file=None,
        known: Optional[KnownVariantIndex] = None,
        read_filter: Optional[ReadFilter] = None,
        max_depth: int = DEFAULT_MAX_PILEUP_DEPTH,
        with_bases: bool = True,
    ):
        """
        Args:
            bam_file (str|pysam.AlignmentFile): path to the sorted and indexed bam file
            reference_file (str|pysam.FastaFile): path to the indexed reference fasta
            known: known variants
            read_filter: reads for which this returns True are left out of the pileup
            max_depth: maximum number of reads piled up at any locus
            with_bases: collect read bases/qualities (required for mismatch detection)
        """
        self.fh = bam_file
        if not hasattr(bam_file, 'pileup'):
            self.fh = pysam.AlignmentFile(bam_file, 'rb')
        self.reference = reference_file
        if reference_file is not None and not hasattr(reference_file, 'fetch'):
            self.reference = pysam.FastaFile(reference_file)
        self.known = known if known is not None else KnownVariantIndex()
        self.read_filter = read_filter if read_filter is not None else ReadFilter()
        self.max_depth = max_depth
        self.with_bases = with_bases
        atexit.register(self.close)  # makes the file 'auto close' on normal python exit

    @classmethod
    def from_config(cls, bam_file, config, reference_file=None, known=None) -> 'BamEvidenceSource':
        """
        create the evidence source with the read filters and depth limit given by the config (TargetConfig)
        """
        source = cls(
            bam_file,
            reference_file=reference_file,
            known=known,
            max_depth=config.max_depth,
            with_bases=config.detect_mismatches,
        )
        source.read_filter = ReadFilter.from_config(config, source.fh.header)
        return source

    def contigs(self) -> List[Tuple[str, int]]:
        """
        Returns:
            the contig names and lengths, in the order of the bam header
        """
        return list(zip(self.fh.references, self.fh.lengths))

    def reference_id(self, chrom: str) -> int:
        """
        Args:
            chrom: the chromosome/reference name
        Returns:
            the reference id corresponding to input chromosome name
        """
        tid = self.fh.get_tid(chrom)
        if tid == -1:
            tid = self.fh.get_tid(re.sub('^chr', '', chrom))
        if tid == -1:
            tid = self.fh.get_tid('chr' + chrom)
        if tid == -1:
            raise KeyError('invalid reference name not present in bam file', chrom)
        return tid

    def _reference_sequence(self, chrom: str, start: int, end: int) -> Optional[str]:
        if self.reference is None:
            return None
        for name in [chrom, re.sub('^chr', '', chrom), 'chr' + chrom]:
            if name in self.reference.references:
                return self.reference.fetch(name, start - 1, end).upper()
        raise KeyError('reference fasta does not contain the expected contig', chrom)

    def loci(self, chrom: str, start: int, end: int) -> Iterator[LocusEvidence]:
        """
        Args:
            chrom: the contig
            start: first position (1-based)
            end: last position (inclusive)

        Returns:
            the evidence for every locus with aligned reads or known variants, in ascending order
        """
        chr_index = self.reference_id(chrom)
        chrom = self.fh.get_reference_name(chr_index)
        ref_seq = self._reference_sequence(chrom, start, end)

        known_by_pos: Dict[int, List[KnownVariant]] = {}
        for variant in self.known.overlapping(chrom, start, end):
            for pos in range(max(start, variant.pos), min(end, variant.end) + 1):
                known_by_pos.setdefault(pos, []).append(variant)
        known_positions = sorted(known_by_pos)
        next_known = 0

        def evidence(pos, pileup):
            ref_base = None
            if ref_seq is not None and pos - start < len(ref_seq):
                ref_base = ref_seq[pos - start]
            return LocusEvidence(
                GenomicSpan(chrom, pos, chr_index=chr_index),
                known_by_pos.get(pos, []),
                pileup,
                ref_base,
            )

        columns = self.fh.pileup(
            chrom,
            start - 1,
            end,
            truncate=True,
            stepper='all',
            max_depth=self.max_depth,
            min_base_quality=0,
            ignore_overlaps=False,
            ignore_orphans=False,
        )
        for column in columns:
            pos = column.reference_pos + 1
            # loci covered only by known variants
            while next_known < len(known_positions) and known_positions[next_known] < pos:
                yield evidence(known_positions[next_known], [])
                next_known += 1
            if next_known < len(known_positions) and known_positions[next_known] == pos:
                next_known += 1
            pileup = [
                PileupElement.from_pileup_read(pileup_read, self.with_bases)
                for pileup_read in column.pileups
                if not pileup_read.is_refskip and not self.read_filter(pileup_read.alignment)
            ]
            yield evidence(pos, pileup)

        for pos in known_positions[next_known:]:
            yield evidence(pos, [])

    def close(self):
        atexit.unregister(self.close)
        try:
            self.fh.close()
        except AttributeError:
            pass
        if self.reference is not None:
            try:
                self.reference.close()
            except AttributeError:
                pass
