"""
Unit tests for extmirror.config module
"""
import unittest
import tempfile
import os
import shutil
import json
import logging
from pathlib import Path
from unittest.mock import patch

from extmirror.config import (
    ConfigLoadError,
    configure_logging,
    get_default_config,
    load_config,
    merge_configs,
    save_config,
)


class TestConfigManagement(unittest.TestCase):
    """Test configuration management functionality"""

    def setUp(self):
        """Set up test environment"""
        self.temp_dir = tempfile.mkdtemp()
        self.env = patch.dict(os.environ, {'HOME': self.temp_dir}, clear=False)
        self.env.start()
        for key in list(os.environ):
            if key.startswith('EXTMIRROR_') or key == 'GITHUB_TOKEN':
                os.environ.pop(key)

    def tearDown(self):
        """Clean up test environment"""
        self.env.stop()
        shutil.rmtree(self.temp_dir)

    def _config_dir(self):
        config_dir = Path(self.temp_dir) / '.extmirror'
        config_dir.mkdir(exist_ok=True)
        return config_dir

    def test_get_default_config(self):
        """Test default configuration structure"""
        config = get_default_config()

        for section in ('general', 'github', 'queue', 'upstream', 'git', 'worker', 'logging'):
            self.assertIn(section, config)

        self.assertEqual(config['queue']['tube'], 'extensions')
        self.assertEqual(config['git']['branch'], 'master')
        self.assertFalse(config['git']['check_exit_codes'])

    def test_load_config_no_file(self):
        """Test loading config when no file exists"""
        config = load_config()
        self.assertEqual(config['queue']['url'], get_default_config()['queue']['url'])

    def test_load_config_json_file(self):
        """Test loading config from JSON file"""
        config_path = self._config_dir() / 'config.json'
        config_path.write_text(json.dumps({
            'github': {'owner': 'typo3-ter'},
            'logging': {'level': 'DEBUG'}
        }))

        config = load_config()

        self.assertEqual(config['github']['owner'], 'typo3-ter')
        self.assertEqual(config['logging']['level'], 'DEBUG')
        # Untouched keys keep their defaults
        self.assertEqual(config['github']['api_url'], 'https://api.github.com')

    def test_load_config_toml_file(self):
        """Test loading config from TOML file"""
        config_path = self._config_dir() / 'config.toml'
        config_path.write_text("""
[queue]
tube = "extensions-test"

[git]
check_exit_codes = true
""")

        config = load_config()

        self.assertEqual(config['queue']['tube'], 'extensions-test')
        self.assertTrue(config['git']['check_exit_codes'])

    def test_load_config_yaml_file(self):
        """Test loading config from YAML file"""
        config_path = self._config_dir() / 'config.yaml'
        config_path.write_text("general:\n  temp_dir: /var/tmp/mirror\n")

        config = load_config()

        self.assertEqual(config['general']['temp_dir'], '/var/tmp/mirror')

    def test_explicit_config_path(self):
        """Test loading an explicitly given file"""
        config_path = Path(self.temp_dir) / 'custom.json'
        config_path.write_text(json.dumps({'queue': {'prefix': 'custom'}}))

        config = load_config(config_path)

        self.assertEqual(config['queue']['prefix'], 'custom')

    def test_malformed_config_raises(self):
        """Test that an unreadable file is an error, not silently ignored"""
        config_path = self._config_dir() / 'config.json'
        config_path.write_text('{"github": ')

        with self.assertRaises(ConfigLoadError):
            load_config()

    def test_environment_override(self):
        """Test environment variable override"""
        with patch.dict(os.environ, {'EXTMIRROR_QUEUE_TUBE': 'other'}):
            config = load_config()
        self.assertEqual(config['queue']['tube'], 'other')

    def test_nested_environment_override(self):
        """Test nested and underscore-containing keys"""
        with patch.dict(os.environ, {
            'EXTMIRROR_GITHUB_RATE_LIMIT_MAX_RETRIES': '7',
            'EXTMIRROR_GITHUB_OWNER_IS_ORGANIZATION': 'true',
        }):
            config = load_config()
        self.assertEqual(config['github']['rate_limit']['max_retries'], 7)
        self.assertTrue(config['github']['owner_is_organization'])

    def test_github_token_fallback(self):
        """Test GITHUB_TOKEN fills an empty token"""
        with patch.dict(os.environ, {'GITHUB_TOKEN': 'abc123'}):
            config = load_config()
        self.assertEqual(config['github']['token'], 'abc123')

    def test_save_config_json(self):
        """Test saving config writes JSON that loads back"""
        config = get_default_config()
        config['github']['owner'] = 'someone'

        path = save_config(config)

        self.assertTrue(path.exists())
        self.assertEqual(load_config()['github']['owner'], 'someone')

    def test_save_config_yaml(self):
        """Test saving config as YAML"""
        path = save_config(get_default_config(), Path(self.temp_dir) / 'out.yaml')
        self.assertEqual(load_config(path)['queue']['tube'], 'extensions')

    def test_merge_configs(self):
        """Test recursive merge"""
        merged = merge_configs({'a': {'b': 1, 'c': 2}}, {'a': {'c': 3}, 'd': 4})
        self.assertEqual(merged, {'a': {'b': 1, 'c': 3}, 'd': 4})

    def test_configure_logging(self):
        """Test logging level comes from config unless verbose"""
        config = get_default_config()
        config['logging']['level'] = 'WARNING'

        logger = configure_logging(config)
        self.assertEqual(logger.level, logging.WARNING)

        logger = configure_logging(config, verbose=True)
        self.assertEqual(logger.level, logging.DEBUG)


if __name__ == '__main__':
    unittest.main()
