import argparse
import json
from copy import copy as _copy
from dataclasses import dataclass
from typing import Dict, Optional

from .constants import DEFAULT_MAX_PILEUP_DEPTH, float_fraction
from .error import ConfigurationError
from .schemas import CONFIG_SCHEMA, DEFAULTS, get_by_prefix, snakemake_validate
from .util import cast_boolean, filepath, logger


@dataclass(frozen=True)
class TargetConfig:
    """
    settings for detecting and merging events. Created once, before any processing, and passed
    explicitly to the classifier, the finalizer and the reducers
    """

    window_size: int = 10
    mismatch_fraction: Optional[float] = None
    min_reads_at_locus: int = 4
    max_interval_size: int = 500
    filter_mapping_quality_zero: bool = True
    filter_mapping_quality_unavailable: bool = True
    filter_bad_mate: bool = True
    filter_platform_454: bool = True
    filter_bad_cigar: bool = True
    partition_size: int = 1000000
    processes: int = 1
    max_depth: int = DEFAULT_MAX_PILEUP_DEPTH

    def __post_init__(self):
        if self.window_size < 2:
            raise ConfigurationError(
                f'window_size must be an integer greater than 1 (given {self.window_size})'
            )

    @property
    def detect_mismatches(self) -> bool:
        """
        mismatch (entropy) detection is only enabled for fractions in (0, 1]

        Example:
            >>> TargetConfig(mismatch_fraction=0.15).detect_mismatches
            True
            >>> TargetConfig(mismatch_fraction=0).detect_mismatches
            False
        """
        return self.mismatch_fraction is not None and 0 < self.mismatch_fraction <= 1

    @classmethod
    def from_dict(cls, config: Dict) -> 'TargetConfig':
        """
        build the settings from a validated flat configuration dictionary
        """
        targets = get_by_prefix(config, 'targets.')
        filters = get_by_prefix(config, 'filters.')
        partition = get_by_prefix(config, 'partition.')
        return cls(
            window_size=targets['window_size'],
            mismatch_fraction=targets['mismatch_fraction'],
            min_reads_at_locus=targets['min_reads_at_locus'],
            max_interval_size=targets['max_interval_size'],
            filter_mapping_quality_zero=filters['mapping_quality_zero'],
            filter_mapping_quality_unavailable=filters['mapping_quality_unavailable'],
            filter_bad_mate=filters['bad_mate'],
            filter_platform_454=filters['platform_454'],
            filter_bad_cigar=filters['bad_cigar'],
            partition_size=partition['size'],
            processes=partition['processes'],
            max_depth=partition['max_depth'],
        )


def validate_config(config: Dict) -> Dict:
    """
    Check that the input JSON config conforms to the expected schema. Missing values are filled in
    with their defaults

    Raises:
        ConfigurationError: the config does not match the schema
    """
    try:
        snakemake_validate(config, CONFIG_SCHEMA, set_default=True)
    except Exception as err:
        short_msg = '. '.join(
            [line for line in str(err).split('\n') if line.strip()][:3]
        )  # these can get super long
        raise ConfigurationError(short_msg)
    return config


def load_config(filename: Optional[str] = None, overrides: Optional[Dict] = None) -> TargetConfig:
    """
    read the JSON config (if given) and apply any command line overrides on top of it

    Args:
        filename: path to the JSON config file
        overrides: settings which take precedence over the config file. None values are ignored
    """
    config: Dict = dict()
    if filename:
        logger.info(f'loading config: {filename}')
        with open(filename, 'r') as fh:
            config = json.load(fh)
        if not isinstance(config, dict):
            raise ConfigurationError(f'expected the config file to contain a JSON object: {filename}')
    for key, value in (overrides or {}).items():
        if value is not None:
            config[key] = value
    validate_config(config)
    return TargetConfig.from_dict(config)


class CustomHelpFormatter(argparse.ArgumentDefaultsHelpFormatter):
    """
    subclass the default help formatter to stop default printing for required arguments
    """

    def _format_args(self, action, default_metavar):
        if action.metavar is None:
            action.metavar = get_metavar(action.type)
        return super(CustomHelpFormatter, self)._format_args(action, default_metavar)

    def _get_help_string(self, action):
        if action.required or isinstance(action, ConfigOverrideAction):
            return action.help
        return super(CustomHelpFormatter, self)._get_help_string(action)

    def add_arguments(self, actions):
        # sort the arguments alphanumerically so they print in the help that way
        actions = sorted(actions, key=lambda x: getattr(x, 'option_strings'))
        super(CustomHelpFormatter, self).add_arguments(actions)


class ConfigOverrideAction(argparse.Action):
    """
    stores a command line value under the flat config key it overrides
    """

    def __init__(self, config_key, **kwargs):
        kwargs.setdefault('default', None)
        if 'help' in kwargs and config_key in DEFAULTS:
            kwargs['help'] = '{} (config: {}, default: {})'.format(
                kwargs['help'], config_key, DEFAULTS[config_key]
            )
        argparse.Action.__init__(self, **kwargs)
        self.config_key = config_key

    def __call__(self, parser, namespace, values, option_string=None):
        overrides = _copy(getattr(namespace, 'config_overrides', None) or {})
        overrides[self.config_key] = values
        setattr(namespace, 'config_overrides', overrides)
        setattr(namespace, self.dest, values)


def get_metavar(arg_type):
    """
    For a given argument type, returns the string to be used for the metavar argument in add_argument

    Example:
        >>> get_metavar(bool)
        '{True,False}'
    """
    if arg_type in [bool, cast_boolean]:
        return '{True,False}'
    elif arg_type in [float_fraction, float]:
        return 'FLOAT'
    elif arg_type == int:
        return 'INT'
    elif arg_type == filepath:
        return 'FILEPATH'
    return None
