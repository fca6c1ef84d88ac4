"""
Runs the target search over a bam file. The genome is split into partitions which are scanned
independently (optionally in parallel) and then combined in reference order
"""
import time
from concurrent import futures
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pysam

from .bam.pileup import BamEvidenceSource
from .classify import EventClassifier
from .combine import BoundaryCombiner, tree_reduce
from .config import TargetConfig
from .error import ConfigurationError
from .event import BoundaryState
from .finalize import IntervalFinalizer
from .fold import PartitionFolder
from .known import KnownVariant, KnownVariantIndex, read_known_variants
from .span import GenomicSpan
from .util import logger


@dataclass(frozen=True)
class PartitionJob:
    """
    everything required to scan a single partition. Must be picklable to be sent to a worker process
    """

    bam: str
    region: GenomicSpan
    config: TargetConfig
    reference: Optional[str] = None
    known_variants: Tuple[KnownVariant, ...] = ()
    contig_lengths: Dict[str, int] = field(default_factory=dict, compare=False)


def merge_regions(regions: Iterable[GenomicSpan]) -> List[GenomicSpan]:
    """
    sort the regions and collapse any that overlap or touch

    Example:
        >>> merge_regions([GenomicSpan('1', 50, 100), GenomicSpan('1', 1, 50), GenomicSpan('1', 101, 120)])
        [GenomicSpan(1:1-120)]
    """
    merged: List[GenomicSpan] = []
    for region in sorted(regions):
        if merged and merged[-1].same_contig(region) and region.start <= merged[-1].end + 1:
            last = merged[-1]
            merged[-1] = GenomicSpan(
                last.chr, last.start, max(last.end, region.end), chr_index=last.chr_index
            )
        else:
            merged.append(region)
    return merged


def partition_regions(regions: Iterable[GenomicSpan], size: int) -> List[GenomicSpan]:
    """
    split regions into contiguous partitions of at most size loci, in reference order

    Example:
        >>> partition_regions([GenomicSpan('1', 1, 25)], 10)
        [GenomicSpan(1:1-10), GenomicSpan(1:11-20), GenomicSpan(1:21-25)]
    """
    if size < 1:
        raise ValueError('partition size must be a positive integer', size)
    partitions = []
    for region in merge_regions(regions):
        for start in range(region.start, region.end + 1, size):
            partitions.append(
                GenomicSpan(
                    region.chr, start, min(start + size - 1, region.end), chr_index=region.chr_index
                )
            )
    return partitions


def scan_partition(job: PartitionJob) -> BoundaryState:
    """
    classify every locus of the partition and fold the resulting events

    Returns:
        BoundaryState: the partial result for this partition
    """
    finalizer = IntervalFinalizer(job.config, job.contig_lengths)
    classifier = EventClassifier(job.config)
    folder = PartitionFolder(finalizer)
    source = BamEvidenceSource.from_config(
        job.bam, job.config, job.reference, KnownVariantIndex(job.known_variants)
    )
    region = job.region
    try:
        for evidence in source.loci(region.chr, region.start, region.end):
            folder.add(
                classifier.classify(
                    evidence.locus, evidence.known_variants, evidence.pileup, evidence.reference_base
                )
            )
    finally:
        source.close()
    state = folder.state()
    logger.debug(f'scanned partition {region}: {len(state.finalized)} closed, {len(state.open_events)} open')
    return state


def resolve_regions(
    contigs: Sequence[Tuple[str, int]], regions: Optional[Iterable[str]] = None
) -> List[GenomicSpan]:
    """
    convert the region strings to spans ranked by the contig order of the bam header. All contigs are
    used when no regions are given

    Raises:
        ConfigurationError: a region names a contig not in the bam header or lies outside of it
    """
    contig_lengths = dict(contigs)
    contig_order = {name: rank for rank, (name, _) in enumerate(contigs)}
    if not regions:
        return [
            GenomicSpan(name, 1, length, chr_index=contig_order[name])
            for name, length in contigs
            if length > 0
        ]
    result = []
    for region in regions:
        try:
            span = GenomicSpan.parse(region, contig_lengths, contig_order)
        except (KeyError, ValueError) as err:
            raise ConfigurationError(f'invalid region ({region}): {err}')
        if span.chr not in contig_lengths:
            raise ConfigurationError(f'region contig is not in the bam header: {region}')
        if span.start < 1 or span.end > contig_lengths[span.chr]:
            raise ConfigurationError(
                f'region is outside the contig (length {contig_lengths[span.chr]}): {region}'
            )
        result.append(span)
    return result


def find_targets(
    bam_file: str,
    config: TargetConfig,
    reference: Optional[str] = None,
    known_files: Sequence[str] = (),
    regions: Optional[Iterable[str]] = None,
) -> List[GenomicSpan]:
    """
    find the intervals which should be targeted for local realignment

    Args:
        bam_file: path to the coordinate sorted and indexed bam file
        config: the run settings
        reference: path to the indexed reference fasta. Required for mismatch detection
        known_files: VCF files of known variants
        regions: regions to scan (contig, contig:pos or contig:start-end). Defaults to the whole genome

    Returns:
        the ascending, non-redundant target intervals

    Raises:
        ConfigurationError: the settings and inputs are inconsistent
    """
    if config.detect_mismatches and not reference:
        raise ConfigurationError('a reference fasta is required when mismatch_fraction is enabled')

    with pysam.AlignmentFile(bam_file, 'rb') as fh:
        contigs = list(zip(fh.references, fh.lengths))
    contig_lengths = dict(contigs)
    partitions = partition_regions(resolve_regions(contigs, regions), config.partition_size)
    known = read_known_variants(*known_files) if known_files else KnownVariantIndex()

    jobs = [
        PartitionJob(
            bam=bam_file,
            region=partition,
            config=config,
            reference=reference,
            known_variants=tuple(known.overlapping(partition.chr, partition.start, partition.end)),
            contig_lengths=contig_lengths,
        )
        for partition in partitions
    ]
    logger.info(f'scanning {len(jobs)} partition(s) using {config.processes} process(es)')
    start_time = time.time()

    if config.processes > 1 and len(jobs) > 1:
        with futures.ProcessPoolExecutor(max_workers=config.processes) as pool:
            # map returns results in submission order, the combine step relies on it
            states = list(pool.map(scan_partition, jobs))
    else:
        states = [scan_partition(job) for job in jobs]
    logger.info(f'scanned partitions in {time.time() - start_time:.2f}s')

    finalizer = IntervalFinalizer(config, contig_lengths)
    combined = tree_reduce(states, BoundaryCombiner(finalizer))
    targets = finalizer.targets(combined)
    logger.info(f'found {len(targets)} target interval(s)')
    return targets
