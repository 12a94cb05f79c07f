#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HaploPurge v0.1.0

Tests for configuration loading, overrides and validation.

Author: HaploPurge Development Team
License: MIT
"""

import pytest
import yaml

from haplopurge.config import (
    ConfigParser,
    DEFAULT_CONFIG,
    load_config,
    save_config_template,
    validate_config,
)
from haplopurge.errors import ConfigValidationError
from haplopurge.utils.tools import TOOL_NAMES


class TestDefaults:
    """Test default configuration values."""

    def test_default_minimap2_presets(self):
        config = load_config()

        assert config['alignment']['read_preset'] == 'asm20'
        assert config['alignment']['self_preset'] == 'asm5'
        assert config['alignment']['self_flags'] == ['-D', '-P']

    def test_every_tool_has_override_slot(self):
        config = load_config()

        for name in TOOL_NAMES:
            assert name in config['tools']
            assert config['tools'][name] is None

    def test_load_config_returns_copy(self):
        config = load_config()
        config['alignment']['read_preset'] = 'map-ont'

        assert DEFAULT_CONFIG['alignment']['read_preset'] == 'asm20'
        assert load_config()['alignment']['read_preset'] == 'asm20'


class TestConfigParser:
    """Test YAML loading, merging and environment substitution."""

    def test_user_values_override_defaults(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({
            'hardware': {'threads': 8},
            'alignment': {'read_preset': 'map-pb'},
        }))

        config = load_config(config_file)

        assert config['hardware']['threads'] == 8
        assert config['alignment']['read_preset'] == 'map-pb'
        # Untouched keys keep their defaults
        assert config['alignment']['self_preset'] == 'asm5'

    def test_env_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv('ASM_DIR', '/data/asm')
        monkeypatch.delenv('READS_DIR', raising=False)
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "input:\n"
            "  primary: ${ASM_DIR}/p_ctg.fa\n"
            "  reads: ${READS_DIR:-/data/reads}/hifi.fq.gz\n"
        )

        parser = ConfigParser(config_file)

        assert parser.get('input.primary') == '/data/asm/p_ctg.fa'
        assert parser.get('input.reads') == '/data/reads/hifi.fq.gz'

    def test_cli_overrides_skip_none(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({'hardware': {'threads': 4}}))

        parser = ConfigParser(config_file)
        parser.merge_cli_overrides({
            'hardware.threads': None,
            'output.work_dir': 'custom_run',
            'output.logging.level': 'DEBUG',
        })

        assert parser.get('hardware.threads') == 4
        assert parser.get('output.work_dir') == 'custom_run'
        assert parser.get('output.logging.level') == 'DEBUG'

    def test_get_missing_key_returns_default(self):
        parser = ConfigParser()

        assert parser.get('no.such.key', 'fallback') == 'fallback'

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigValidationError):
            ConfigParser(tmp_path / "absent.yaml")

    def test_invalid_yaml_raises(self, tmp_path):
        config_file = tmp_path / "broken.yaml"
        config_file.write_text("input: [unclosed\n")

        with pytest.raises(ConfigValidationError):
            load_config(config_file)

    def test_non_mapping_raises(self, tmp_path):
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigValidationError):
            load_config(config_file)


class TestValidation:
    """Test validate_config error reporting."""

    def test_valid_config(self, pipeline_config):
        assert validate_config(pipeline_config) == []

    def test_missing_inputs_reported(self):
        errors = validate_config(load_config())

        assert any('input.primary' in e for e in errors)
        assert any('input.alternate' in e for e in errors)
        assert any('input.reads' in e for e in errors)

    def test_nonexistent_input_reported(self, pipeline_config, tmp_path):
        pipeline_config['input']['reads'] = str(tmp_path / "missing.fq")

        errors = validate_config(pipeline_config)

        assert any('missing.fq' in e for e in errors)

    @pytest.mark.parametrize("threads", [0, -4, "many", True])
    def test_invalid_threads(self, pipeline_config, threads):
        pipeline_config['hardware']['threads'] = threads

        errors = validate_config(pipeline_config)

        assert any('thread' in e.lower() for e in errors)

    def test_empty_preset(self, pipeline_config):
        pipeline_config['alignment']['read_preset'] = ''

        errors = validate_config(pipeline_config)

        assert any('read_preset' in e for e in errors)

    def test_bad_log_level(self, pipeline_config):
        pipeline_config['output']['logging']['level'] = 'LOUD'

        errors = validate_config(pipeline_config)

        assert any('logging level' in e for e in errors)

    def test_missing_bin_dir(self, pipeline_config, tmp_path):
        pipeline_config['tools']['bin_dir'] = str(tmp_path / "nowhere")

        errors = validate_config(pipeline_config)

        assert any('bin_dir' in e for e in errors)


class TestTemplate:
    """Test configuration template generation."""

    def test_template_loads_back(self, tmp_path):
        output = tmp_path / "template.yaml"

        save_config_template(output)
        config = load_config(output)

        assert config['input']['primary'] == 'primary_assembly.fa'
        assert config['alignment']['read_preset'] == 'asm20'
        assert set(config) == set(DEFAULT_CONFIG)

# HaploPurge v0.1.0
# Any usage is subject to this software's license.
