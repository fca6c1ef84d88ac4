import os
import tempfile

import pysam
import pytest

long_running_test = pytest.mark.skipif(
    os.environ.get('RUN_FULL', '1') != '1',
    reason='Only running FAST tests subset',
)

MOCK_CONTIG = 'chr1'
MOCK_CONTIG_SEQ = ('ACGTTGCAAGTCCATGGATC' * 60)[:1000]
"""1kb contig without long homopolymers"""


def write_fasta(filename, contigs):
    """
    write and index a fasta file

    Args:
        contigs (Dict[str,str]): sequence by contig name
    """
    with open(filename, 'w') as fh:
        for name, seq in contigs.items():
            fh.write(f'>{name}\n')
            for i in range(0, len(seq), 60):
                fh.write(seq[i : i + 60] + '\n')
    pysam.faidx(filename)
    return filename


def write_vcf(filename, records):
    """
    Args:
        records (List[Tuple]): (chrom, pos, ref, alt[, info]) tuples
    """
    with open(filename, 'w') as fh:
        fh.write('##fileformat=VCFv4.2\n')
        fh.write('##source=tests\n')
        fh.write('#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\n')
        for record in records:
            chrom, pos, ref, alt = record[:4]
            info = record[4] if len(record) > 4 else '.'
            fh.write(f'{chrom}\t{pos}\t.\t{ref}\t{alt}\t.\tPASS\t{info}\n')
    return filename


def mock_read(
    header,
    name,
    start,
    cigar,
    seq=None,
    reference_id=0,
    mapping_quality=60,
    quality=30,
    read_group=None,
):
    """
    build an aligned read. The sequence is taken from the mock contig when not given

    Args:
        start: 0-based reference start of the alignment
        cigar: the cigar string
    """
    read = pysam.AlignedSegment(header)
    read.query_name = name
    read.flag = 0
    read.reference_id = reference_id
    read.reference_start = start
    read.mapping_quality = mapping_quality
    read.cigarstring = cigar
    if seq is None:
        seq = aligned_query_sequence(MOCK_CONTIG_SEQ, start, read.cigartuples)
    read.query_sequence = seq
    read.query_qualities = pysam.qualitystring_to_array(chr(quality + 33) * len(seq))
    read.next_reference_id = -1
    read.next_reference_start = -1
    read.template_length = 0
    if read_group:
        read.set_tag('RG', read_group)
    return read


def aligned_query_sequence(reference, start, cigartuples):
    """
    the query sequence which matches the reference exactly for the given alignment. Inserted and
    soft-clipped bases are filled with N
    """
    seq = []
    pos = start
    for state, length in cigartuples:
        if state in {0, 7, 8}:
            seq.append(reference[pos : pos + length])
            pos += length
        elif state in {1, 4}:
            seq.append('N' * length)
        elif state in {2, 3}:
            pos += length
    return ''.join(seq)


def write_bam(filename, reads_factory, contigs=None, read_groups=None):
    """
    write a coordinate sorted and indexed bam file

    Args:
        reads_factory (Callable[[pysam.AlignmentHeader], List[pysam.AlignedSegment]]): builds the reads for the header
        contigs (List[Tuple[str,int]]): contig names and lengths
        read_groups (List[Dict]): RG header lines
    """
    contigs = contigs or [(MOCK_CONTIG, len(MOCK_CONTIG_SEQ))]
    header_dict = {
        'HD': {'VN': '1.6', 'SO': 'coordinate'},
        'SQ': [{'SN': name, 'LN': length} for name, length in contigs],
    }
    if read_groups:
        header_dict['RG'] = read_groups
    header = pysam.AlignmentHeader.from_dict(header_dict)
    reads = sorted(reads_factory(header), key=lambda r: (r.reference_id, r.reference_start))
    with pysam.AlignmentFile(filename, 'wb', header=header) as fh:
        for read in reads:
            fh.write(read)
    pysam.index(filename)
    return filename


class MockInputs:
    """
    temporary directory holding the mock reference and any bam/vcf files built for a test
    """

    def __init__(self):
        self.dirname = tempfile.mkdtemp()
        self.reference = write_fasta(self.path('reference.fa'), {MOCK_CONTIG: MOCK_CONTIG_SEQ})

    def path(self, *paths):
        return os.path.join(self.dirname, *paths)

    def bam(self, reads_factory, name='reads.bam', **kwargs):
        return write_bam(self.path(name), reads_factory, **kwargs)

    def vcf(self, records, name='known.vcf'):
        return write_vcf(self.path(name), records)
