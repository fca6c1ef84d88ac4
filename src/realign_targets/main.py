#!python
import argparse
import logging
import platform
import sys
import time
from typing import List, Optional

from . import __version__
from . import config as _config
from . import util as _util
from .constants import EXIT_OK, OUTPUT_FORMAT, PROGNAME, float_fraction
from .error import ConfigurationError
from .pipeline import find_targets
from .util import filepath


def create_parser(argv):
    parser = argparse.ArgumentParser(
        prog=PROGNAME,
        formatter_class=_config.CustomHelpFormatter,
        add_help=False,
        description='finds the intervals of a bam file which should be targeted for local realignment',
    )
    required = parser.add_argument_group('required arguments')
    optional = parser.add_argument_group('optional arguments')
    optional.add_argument('-h', '--help', action='help', help='show this help message and exit')
    optional.add_argument(
        '-v',
        '--version',
        action='version',
        version='%(prog)s version ' + __version__,
        help='Outputs the version number',
    )
    optional.add_argument('--log', help='redirect stdout to a log file', default=None)
    optional.add_argument(
        '--log_level',
        help='level of logging to output',
        choices=['INFO', 'DEBUG'],
        default='INFO',
    )
    required.add_argument(
        '-b', '--bam', help='path to the coordinate sorted and indexed bam file', type=filepath, required=True
    )
    required.add_argument(
        '-o', '--output', help='path to the output targets file', required=True, metavar='FILEPATH'
    )
    optional.add_argument(
        '-c', '--config', help='path to the JSON config file', type=filepath, default=None
    )
    optional.add_argument(
        '-R',
        '--reference',
        help='path to the indexed reference fasta. Required when mismatch detection is enabled',
        type=filepath,
        default=None,
    )
    optional.add_argument(
        '--known',
        nargs='+',
        type=filepath,
        default=[],
        help='VCF files of known indels/SNPs to use as additional evidence',
    )
    optional.add_argument(
        '-L',
        '--region',
        dest='regions',
        action='append',
        default=None,
        help='limit the search to this region (contig, contig:pos or contig:start-end). May be given more than once',
    )
    optional.add_argument(
        '--output_format',
        choices=sorted(OUTPUT_FORMAT.values()),
        default=OUTPUT_FORMAT.INTERVALS,
        help='format of the output targets file',
    )

    # overrides for individual config settings
    for flag, config_key, arg_type, help_msg in [
        ('--window_size', 'targets.window_size', int, 'window size for calculating entropy or SNP clusters'),
        (
            '--mismatch_fraction',
            'targets.mismatch_fraction',
            float_fraction,
            'fraction of base qualities needing to mismatch for a position to have high entropy',
        ),
        (
            '--min_reads_at_locus',
            'targets.min_reads_at_locus',
            int,
            'minimum reads at a locus to enable using the entropy calculation',
        ),
        ('--max_interval_size', 'targets.max_interval_size', int, 'maximum interval size'),
        ('--processes', 'partition.processes', int, 'number of worker processes'),
        ('--partition_size', 'partition.size', int, 'number of loci scanned by each worker at a time'),
    ]:
        optional.add_argument(
            flag,
            action=_config.ConfigOverrideAction,
            config_key=config_key,
            type=arg_type,
            help=help_msg,
        )
    parser.set_defaults(config_overrides={})
    return parser, parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    """
    sets up the parser and checks the validity of command line args, then searches the bam file for
    realignment targets

    Args:
        argv: List of arguments, defaults to command line arguments
    """
    if argv is None:  # need to do at run time or patching will not behave as expected
        argv = sys.argv[1:]
    start_time = int(time.time())
    parser, args = create_parser(argv)

    log_conf = {
        'format': '{asctime} [{levelname}] {message}',
        'style': '{',
        'level': args.log_level,
    }

    original_logging_handlers = logging.root.handlers[:]
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    if args.log:  # redirect stdout AND stderr to a log file
        log_conf['filename'] = args.log
    logging.basicConfig(**log_conf)

    try:
        _util.logger.info(f'{PROGNAME}: {__version__}')
        _util.logger.info(f'hostname: {platform.node()}')
        _util.log_arguments(args)

        try:
            config = _config.load_config(args.config, args.config_overrides)
            targets = find_targets(
                args.bam,
                config,
                reference=args.reference,
                known_files=args.known,
                regions=args.regions,
            )
        except ConfigurationError as err:
            parser.error(str(err))

        _util.write_targets(args.output, targets, args.output_format)

        duration = int(time.time()) - start_time
        hours = duration - duration % 3600
        minutes = duration - hours - (duration - hours) % 60
        seconds = duration - hours - minutes
        _util.logger.info(
            'run time (hh/mm/ss): {}:{:02d}:{:02d}'.format(hours // 3600, minutes // 60, seconds)
        )
        _util.logger.info(f'run time (s): {duration}')
    finally:
        try:
            for handler in logging.root.handlers[:]:
                logging.root.removeHandler(handler)
            for handler in original_logging_handlers:
                logging.root.addHandler(handler)
        except Exception as err:
            print(err)
    return EXIT_OK


if __name__ == '__main__':
    main()
