import errno
import logging
import os
from typing import Iterable, List

import pandas as pd
from mavis_config import bash_expands

from .constants import OUTPUT_FORMAT
from .span import GenomicSpan

logger = logging.getLogger('realign_targets')


def filepath(path):
    try:
        file_list = bash_expands(path)
    except FileNotFoundError:
        raise TypeError('File does not exist', path)
    else:
        if not file_list:
            raise TypeError('File not found', path)
        elif len(file_list) > 1:
            raise TypeError('File pattern match multiple files and expected only one', path)
    return file_list[0]


def cast_boolean(input_value):
    value = str(input_value).lower()
    if value in ['t', 'true', '1', 'y', 'yes', '+']:
        return True
    elif value in ['f', 'false', '0', 'n', 'no', '-']:
        return False
    raise TypeError('casting to boolean failed', input_value)


def log_arguments(args):
    """
    output the arguments to the console

    Args:
        args (Namespace): the namespace to print arguments for
    """
    logger.info('arguments')

    indent = ' '

    for arg, val in sorted(args.__dict__.items()):
        if isinstance(val, list):
            if len(val) <= 1:
                logger.info(f'{indent}{arg} = {val}')
                continue
            logger.info(f'{indent}{arg} = [')
            for v in val:
                logger.info(f'{indent * 2}{repr(v)}')
            logger.info(f'{indent}]')
        elif any([isinstance(val, typ) for typ in [str, int, float, bool, tuple, dict]]) or val is None:
            logger.info(f'{indent}{arg} = {repr(val)}')
        else:
            logger.info(f'{arg} = {object.__repr__(val)}')


def mkdirp(dirname):
    """
    Make a directory or path of directories. Suppresses the error that is normally raised when the directory already exists
    """
    logger.info(f"creating output directory: '{dirname}'")
    try:
        os.makedirs(dirname)
    except OSError as exc:
        if exc.errno == errno.EEXIST and os.path.isdir(dirname):
            pass
        else:
            raise exc
    return dirname


def write_targets(
    filename: str, spans: Iterable[GenomicSpan], file_format: str = OUTPUT_FORMAT.INTERVALS
) -> List[GenomicSpan]:
    """
    write the target intervals to a file

    Args:
        filename: path to the output file
        spans: the intervals to write, in the order they should be written
        file_format (OUTPUT_FORMAT): one contig:start-end per line, or a BED table
    """
    file_format = OUTPUT_FORMAT.enforce(file_format)
    spans = list(spans)
    if os.path.dirname(filename):
        mkdirp(os.path.dirname(filename))
    logger.info(f'writing: {filename}')
    if file_format == OUTPUT_FORMAT.BED:
        df = pd.DataFrame.from_records(
            [span.to_bed() for span in spans], columns=['chrom', 'chromStart', 'chromEnd']
        )
        df.to_csv(filename, index=False, header=False, sep='\t')
    else:
        with open(filename, 'w') as fh:
            for span in spans:
                fh.write(f'{span}\n')
    return spans


def read_targets(filename: str) -> List[GenomicSpan]:
    """
    read back an intervals file written by :func:`write_targets`
    """
    spans = []
    order = {}
    with open(filename, 'r') as fh:
        for line in fh:
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            span = GenomicSpan.parse(line)
            order.setdefault(span.chr, len(order))
            spans.append(GenomicSpan(span.chr, span.start, span.end, chr_index=order[span.chr]))
    return spans
