"""
Known variants (ex. dbSNP, 1000 genomes indels) read from VCF files
"""
import bisect
import gzip
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import pandas as pd

from .constants import VARIANT_TYPE
from .util import logger

PANDAS_DEFAULT_NA_VALUES = [
    '-1.#IND',
    '1.#QNAN',
    '1.#IND',
    '-1.#QNAN',
    '#N/A',
    'N/A',
    'NA',
    '#NA',
    'NULL',
    'NaN',
    '-NaN',
    'nan',
    '-nan',
]


def _is_symbolic(alt: str) -> bool:
    return alt.startswith('<') or '[' in alt or ']' in alt or alt in {'*', '.'}


@dataclass(frozen=True)
class KnownVariant:
    """
    a single VCF record. Coordinates are 1-based
    """

    chrom: str
    pos: int
    ref: str
    alts: Tuple[str, ...] = ()
    info_end: Optional[int] = None
    id: str = field(default='.', compare=False)

    @property
    def end(self) -> int:
        """
        Example:
            >>> KnownVariant('1', 100, 'ACGT', ('A',)).end
            103
        """
        if self.info_end is not None:
            return self.info_end
        return self.pos + len(self.ref) - 1

    @property
    def type(self) -> str:
        """
        the variant type, determined from the alleles

        Example:
            >>> KnownVariant('1', 100, 'A', ('C',)).type
            'SNP'
            >>> KnownVariant('1', 100, 'A', ('C', 'AT')).type
            'MIXED'
        """
        if not self.alts:
            return VARIANT_TYPE.NO_VARIATION
        types = set()
        for alt in self.alts:
            if _is_symbolic(alt):
                types.add(VARIANT_TYPE.SYMBOLIC)
            elif len(alt) != len(self.ref):
                types.add(VARIANT_TYPE.INDEL)
            elif len(alt) == 1:
                types.add(VARIANT_TYPE.SNP if alt.upper() != self.ref.upper() else VARIANT_TYPE.NO_VARIATION)
            else:
                types.add(VARIANT_TYPE.MNP)
        types.discard(VARIANT_TYPE.NO_VARIATION)
        if not types:
            return VARIANT_TYPE.NO_VARIATION
        elif len(types) > 1:
            return VARIANT_TYPE.MIXED
        return types.pop()

    @property
    def is_simple_insertion(self) -> bool:
        """
        a bi-allelic insertion with a single padding reference base
        """
        if len(self.alts) != 1 or _is_symbolic(self.alts[0]):
            return False
        alt = self.alts[0]
        return (
            len(self.ref) == 1
            and len(alt) > 1
            and alt[0].upper() == self.ref.upper()
        )


def _parse_info_end(info) -> Optional[int]:
    if not isinstance(info, str):
        return None
    for item in info.split(';'):
        if item.startswith('END='):
            return int(item[4:])
    return None


def pandas_vcf(input_file: str) -> Tuple[List[str], pd.DataFrame]:
    """
    Read a standard vcf file into a pandas dataframe
    """
    # read the comment/header information
    try:
        header_lines = []
        with open(input_file, 'r') as fh:
            line = '##'
            while line.startswith('##'):
                header_lines.append(line)
                line = fh.readline().strip()
            header_lines = header_lines[1:]
    except UnicodeDecodeError:
        header_lines = []
        with gzip.open(input_file, 'rt') as fh:
            line = '##'
            while line.startswith('##'):
                header_lines.append(line)
                line = fh.readline().strip()
            header_lines = header_lines[1:]
    # read the data
    df = pd.read_csv(
        input_file,
        sep='\t',
        skiprows=len(header_lines),
        dtype={
            '#CHROM': str,
            'POS': int,
            'ID': str,
            'INFO': str,
            'REF': str,
            'ALT': str,
        },
        usecols=lambda col: col in {'#CHROM', 'CHROM', 'POS', 'ID', 'REF', 'ALT', 'INFO'},
        na_values=PANDAS_DEFAULT_NA_VALUES + ['.'],
        keep_default_na=False,
    )
    df = df.rename(columns={df.columns[0]: df.columns[0].replace('#', '')})
    required_columns = ['CHROM', 'POS', 'REF', 'ALT']
    for col in required_columns:
        if col not in df.columns:
            raise KeyError(f'Missing required column: {col}')
    return header_lines, df


def convert_pandas_rows_to_variants(df: pd.DataFrame) -> List[KnownVariant]:
    variants = []
    for row in df.to_dict('records'):
        alts = row['ALT']
        alts = tuple(a for a in alts.split(',') if a) if isinstance(alts, str) else ()
        variants.append(
            KnownVariant(
                chrom=str(row['CHROM']),
                pos=int(row['POS']),
                ref=str(row['REF']),
                alts=alts,
                info_end=_parse_info_end(row.get('INFO')),
                id=row['ID'] if isinstance(row.get('ID'), str) else '.',
            )
        )
    return variants


class KnownVariantIndex:
    """
    known variants grouped by contig and sorted by position for overlap lookups

    Contig names are matched with or without the 'chr' prefix
    """

    def __init__(self, variants=()):
        self._by_chr: Dict[str, List[KnownVariant]] = {}
        self._starts: Dict[str, List[int]] = {}
        self._max_length: Dict[str, int] = {}
        for variant in variants:
            self._by_chr.setdefault(self._normalize(variant.chrom), []).append(variant)
        for chrom, chr_variants in self._by_chr.items():
            chr_variants.sort(key=lambda v: (v.pos, v.end))
            self._starts[chrom] = [v.pos for v in chr_variants]
            self._max_length[chrom] = max(v.end - v.pos for v in chr_variants)

    @staticmethod
    def _normalize(chrom: str) -> str:
        return re.sub('^chr', '', str(chrom))

    def __len__(self):
        return sum(len(v) for v in self._by_chr.values())

    def overlapping(self, chrom: str, start: int, end: Optional[int] = None) -> List[KnownVariant]:
        """
        Args:
            chrom: the contig name
            start: the first position of the range (1-based)
            end: the last position of the range (inclusive, defaults to start)

        Returns:
            variants overlapping the range, in order of position
        """
        end = start if end is None else end
        chrom = self._normalize(chrom)
        if chrom not in self._by_chr:
            return []
        starts = self._starts[chrom]
        first = bisect.bisect_left(starts, start - self._max_length[chrom])
        last = bisect.bisect_right(starts, end)
        return [v for v in self._by_chr[chrom][first:last] if v.end >= start]


def read_known_variants(*filenames: str) -> KnownVariantIndex:
    """
    load the known variants from one or more VCF files. Variants which can never produce an event
    (symbolic alleles, reference-only records, MNPs) are skipped
    """
    variants = []
    for filename in filenames:
        logger.info(f'loading known variants: {filename}')
        _, df = pandas_vcf(filename)
        file_variants = [
            v
            for v in convert_pandas_rows_to_variants(df)
            if v.type in {VARIANT_TYPE.SNP, VARIANT_TYPE.INDEL, VARIANT_TYPE.MIXED}
        ]
        logger.info(f'loaded {len(file_variants)} of {df.shape[0]} known variants from {filename}')
        variants.extend(file_variants)
    return KnownVariantIndex(variants)
