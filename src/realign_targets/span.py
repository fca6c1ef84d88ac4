import heapq
import re
from typing import Dict, Iterable, Optional, Tuple


class GenomicSpan:
    """
    a range of positions on a single contig. Coordinates are 1-based and inclusive

    Contigs are ordered by their rank (chr_index) in the reference dictionary rather than by name
    """

    chr: str
    start: int
    end: int
    chr_index: int

    __slots__ = ['chr', 'start', 'end', 'chr_index']

    def __init__(self, chr: str, start: int, end: Optional[int] = None, chr_index: int = 0):
        """
        Args:
            chr: the contig name
            start: the first position of the span
            end: the last position of the span (defaults to start)
            chr_index: rank of the contig in the reference/bam header

        Examples:
            >>> GenomicSpan('1', 100)
            >>> GenomicSpan('1', 100, 120, chr_index=0)
        """
        self.chr = str(chr)
        self.start = int(start)
        self.end = self.start if end is None else int(end)
        self.chr_index = int(chr_index)
        if self.start > self.end:
            raise ValueError('span start > end is not allowed', self.start, self.end)

    @property
    def key(self) -> Tuple[int, str, int, int]:
        return (self.chr_index, self.chr, self.start, self.end)

    def __getstate__(self):
        return self.key

    def __setstate__(self, state):
        self.chr_index, self.chr, self.start, self.end = state

    def __eq__(self, other):
        if not hasattr(other, 'key'):
            return False
        return self.key == other.key

    def __hash__(self):
        return hash(self.key)

    def __lt__(self, other):
        return self.key < other.key

    def __le__(self, other):
        return self.key <= other.key

    def __len__(self):
        """
        Example:
            >>> len(GenomicSpan('1', 1, 11))
            11
        """
        return self.end - self.start + 1

    def __repr__(self):
        return 'GenomicSpan({}:{}-{})'.format(self.chr, self.start, self.end)

    def __str__(self):
        return '{}:{}-{}'.format(self.chr, self.start, self.end)

    def same_contig(self, other) -> bool:
        return self.chr_index == other.chr_index and self.chr == other.chr

    def overlaps(self, other) -> bool:
        return self.same_contig(other) and self.start <= other.end and other.start <= self.end

    def to_bed(self) -> Tuple[str, int, int]:
        """
        Example:
            >>> GenomicSpan('1', 100, 105).to_bed()
            ('1', 99, 105)
        """
        return (self.chr, self.start - 1, self.end)

    @classmethod
    def parse(
        cls,
        region: str,
        contig_lengths: Optional[Dict[str, int]] = None,
        contig_order: Optional[Dict[str, int]] = None,
    ) -> 'GenomicSpan':
        """
        parse a region in the contig:start-end notation

        Args:
            region: the region string. One of contig, contig:pos, or contig:start-end
            contig_lengths: lengths of the contigs, required when only the contig is given
            contig_order: mapping of contig name to its rank

        Example:
            >>> GenomicSpan.parse('chr1:1,000-2,000')
            GenomicSpan(chr1:1000-2000)
        """
        match = re.match(r'^(?P<chr>[^:\s]+)(:(?P<start>[\d,]+)(-(?P<end>[\d,]+))?)?$', region.strip())
        if not match:
            raise ValueError('region does not match the expected format contig:start-end', region)
        chrom = match.group('chr')
        chr_index = (contig_order or {}).get(chrom, 0)
        if match.group('start') is None:
            if not contig_lengths or chrom not in contig_lengths:
                raise KeyError('cannot determine the length of the contig', chrom)
            return cls(chrom, 1, contig_lengths[chrom], chr_index=chr_index)
        start = int(match.group('start').replace(',', ''))
        end = match.group('end')
        end = start if end is None else int(end.replace(',', ''))
        return cls(chrom, start, end, chr_index=chr_index)


def merge_sorted_unique(*groups: Iterable[GenomicSpan]) -> Tuple[GenomicSpan, ...]:
    """
    merge several groups of spans into a single ascending tuple without duplicates

    Note:
        each group is expected to be sorted already. Groups which are not are sorted first
    """
    ordered = []
    for group in groups:
        group = list(group)
        if any(group[i + 1] < group[i] for i in range(len(group) - 1)):
            group = sorted(group)
        ordered.append(group)
    result = []
    for span in heapq.merge(*ordered):
        if not result or result[-1] != span:
            result.append(span)
    return tuple(result)
