import argparse
import dataclasses
import json
import os
import tempfile

import pytest

from realign_targets.config import (
    ConfigOverrideAction,
    TargetConfig,
    get_metavar,
    load_config,
    validate_config,
)
from realign_targets.error import ConfigurationError
from realign_targets.schemas import DEFAULTS, get_by_prefix


def write_config(config):
    fh, filename = tempfile.mkstemp(suffix='.json')
    with os.fdopen(fh, 'w') as fh:
        json.dump(config, fh)
    return filename


class TestTargetConfig:
    def test_defaults(self):
        config = TargetConfig()
        assert config.window_size == 10
        assert config.min_reads_at_locus == 4
        assert config.max_interval_size == 500
        assert not config.detect_mismatches

    def test_window_size_error(self):
        with pytest.raises(ConfigurationError):
            TargetConfig(window_size=1)
        assert TargetConfig(window_size=2).window_size == 2

    @pytest.mark.parametrize('fraction,expected', [(None, False), (0, False), (0.15, True), (1, True), (1.5, False)])
    def test_detect_mismatches(self, fraction, expected):
        assert TargetConfig(mismatch_fraction=fraction).detect_mismatches == expected

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            TargetConfig().window_size = 5


class TestSchema:
    def test_defaults_match(self):
        assert TargetConfig.from_dict(dict(DEFAULTS)) == TargetConfig()

    def test_get_by_prefix(self):
        assert get_by_prefix(DEFAULTS, 'targets.') == {
            'window_size': 10,
            'mismatch_fraction': None,
            'min_reads_at_locus': 4,
            'max_interval_size': 500,
        }

    def test_validate_sets_defaults(self):
        config = validate_config({'targets.window_size': 20})
        assert config['targets.window_size'] == 20
        assert config['targets.max_interval_size'] == 500

    def test_validate_bad_type(self):
        with pytest.raises(ConfigurationError):
            validate_config({'targets.window_size': 'ten'})

    def test_validate_window_size(self):
        with pytest.raises(ConfigurationError):
            validate_config({'targets.window_size': 1})

    def test_validate_unknown_key(self):
        with pytest.raises(ConfigurationError):
            validate_config({'targets.windowsize': 20})


class TestLoadConfig:
    def test_no_file(self):
        assert load_config() == TargetConfig()

    def test_file(self):
        filename = write_config({'targets.window_size': 20, 'filters.bad_cigar': False})
        config = load_config(filename)
        assert config.window_size == 20
        assert not config.filter_bad_cigar
        assert config.filter_bad_mate

    def test_overrides(self):
        filename = write_config({'targets.window_size': 20})
        config = load_config(
            filename, {'targets.window_size': 30, 'targets.max_interval_size': None}
        )
        assert config.window_size == 30
        assert config.max_interval_size == 500

    def test_not_an_object(self):
        filename = write_config([1, 2])
        with pytest.raises(ConfigurationError):
            load_config(filename)


class TestConfigOverrideAction:
    def test_stores_override(self):
        parser = argparse.ArgumentParser()
        parser.add_argument(
            '--window_size', action=ConfigOverrideAction, config_key='targets.window_size', type=int
        )
        parser.set_defaults(config_overrides={})
        args = parser.parse_args(['--window_size', '15'])
        assert args.window_size == 15
        assert args.config_overrides == {'targets.window_size': 15}

    def test_default(self):
        parser = argparse.ArgumentParser()
        parser.add_argument(
            '--window_size', action=ConfigOverrideAction, config_key='targets.window_size', type=int
        )
        parser.set_defaults(config_overrides={})
        args = parser.parse_args([])
        assert args.window_size is None
        assert args.config_overrides == {}


class TestGetMetavar:
    def test_types(self):
        assert get_metavar(bool) == '{True,False}'
        assert get_metavar(int) == 'INT'
        assert get_metavar(float) == 'FLOAT'
        assert get_metavar(str) is None
