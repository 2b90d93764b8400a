"""Tests for configuration module."""

import pytest
import os
from unittest.mock import patch

from sportsync import config


class TestConfigHelpers:
    """Tests for configuration helper functions."""

    def test_get_int_default(self):
        """Default value when environment variable not set."""
        with patch.dict(os.environ, {}, clear=False):
            result = config._get_int('NONEXISTENT_VAR', 42)
            assert result == 42

    def test_get_int_from_env(self):
        """Parse integer from environment variable."""
        with patch.dict(os.environ, {'TEST_INT': '100'}, clear=False):
            result = config._get_int('TEST_INT', 42)
            assert result == 100

    def test_get_int_invalid_value(self):
        """Handle non-integer values gracefully."""
        with patch.dict(os.environ, {'TEST_INT': 'not_a_number'}, clear=False):
            result = config._get_int('TEST_INT', 42)
            assert result == 42  # Returns default on ValueError

    def test_get_float(self):
        """Parse floats, falling back on invalid values."""
        with patch.dict(os.environ, {'TEST_FLOAT': '2.5'}, clear=False):
            assert config._get_float('TEST_FLOAT', 1.0) == 2.5
        with patch.dict(os.environ, {'TEST_FLOAT': 'fast'}, clear=False):
            assert config._get_float('TEST_FLOAT', 1.0) == 1.0

    def test_get_bool_true_variants(self):
        """Test 'true', '1', 'yes' variants."""
        true_values = ['true', 'True', 'TRUE', '1', 'yes', 'Yes', 'YES']
        for value in true_values:
            with patch.dict(os.environ, {'TEST_BOOL': value}, clear=False):
                result = config._get_bool('TEST_BOOL', False)
                assert result is True, f"Failed for value: {value}"

    def test_get_bool_false_variants(self):
        """Test 'false', '0', 'no' variants."""
        false_values = ['false', 'False', 'FALSE', '0', 'no', 'No', 'NO', 'anything_else']
        for value in false_values:
            with patch.dict(os.environ, {'TEST_BOOL': value}, clear=False):
                result = config._get_bool('TEST_BOOL', True)
                assert result is False, f"Failed for value: {value}"

    def test_get_str_from_env(self):
        """Get string from environment variable."""
        with patch.dict(os.environ, {'TEST_STR': 'test_value'}, clear=False):
            result = config._get_str('TEST_STR', 'default')
            assert result == 'test_value'

    def test_get_list(self):
        """Comma-separated values are split and trimmed."""
        with patch.dict(os.environ, {'TEST_LIST': 'NFL, NBA,,MLB '}, clear=False):
            assert config._get_list('TEST_LIST', []) == ['NFL', 'NBA', 'MLB']

    def test_get_list_default_is_copied(self):
        """The default list is not shared with the caller."""
        default = ['NFL']
        result = config._get_list('NONEXISTENT_VAR', default)

        assert result == default
        assert result is not default


class TestConfigValues:
    """Tests for configuration constants."""

    def test_all_config_values_exist(self):
        """Validate all expected config constants exist."""
        required_config = [
            'PORT', 'HOST',
            'FRESHNESS_DB_TYPE', 'DATA_DIR',
            'DATA_MAX_AGE_MINUTES', 'CLIENT_MAX_AGE_MINUTES',
            'REFRESH_RETRY_ATTEMPTS', 'REFRESH_RETRY_DELAY_SECONDS',
            'REFRESH_INTERVAL_MINUTES', 'REFRESH_LEAGUES',
            'API_SPORTS_BASE_URL', 'LEAGUES', 'SERVER_URL',
            'REFRESH_COOLDOWN_SECONDS',
            'LOG_LEVEL'
        ]

        for config_name in required_config:
            assert hasattr(config, config_name), f"Missing config: {config_name}"
            value = getattr(config, config_name)
            assert value is not None, f"Config {config_name} is None"

    def test_refresh_leagues_are_known(self):
        """Every default refresh league has upstream metadata."""
        for league in config.REFRESH_LEAGUES:
            assert league in config.LEAGUES
            assert config.LEAGUES[league]['upstream_id']

    @pytest.mark.parametrize('name', ['DATA_MAX_AGE_MINUTES', 'CLIENT_MAX_AGE_MINUTES'])
    def test_windows_are_positive(self, name):
        """Freshness windows are positive."""
        assert getattr(config, name) > 0
