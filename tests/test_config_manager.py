"""
配置管理器测试

测试YAML配置加载、默认值以及无效值的回退。
"""

import os
import tempfile
import unittest

import yaml

from lyricsplus.utils.config_manager import ConfigManager


class TestConfigManager(unittest.TestCase):
    """配置管理器测试类"""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config_path = os.path.join(self.temp_dir.name, "config.yaml")

    def tearDown(self):
        self.temp_dir.cleanup()

    def _write_config(self, data):
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f)

    def test_missing_file_uses_defaults(self):
        """测试配置文件不存在时使用默认值"""
        config = ConfigManager(self.config_path)

        self.assertEqual(config.get_provider_url(), "https://lrclib.net/api/get")
        self.assertEqual(config.get_provider_timeout(), 10.0)
        self.assertEqual(config.get_max_versions(), 0)
        self.assertEqual(config.get_resync_delay(), 3.0)
        self.assertEqual(config.get_prefetch_delay(), 0.15)
        self.assertEqual(config.get_prefetch_max_items(), 20)
        self.assertTrue(config.is_prefetch_enabled())
        self.assertEqual(config.get_log_level(), "INFO")
        self.assertIsNone(config.get_log_file())

    def test_missing_required_file_raises(self):
        with self.assertRaises(FileNotFoundError):
            ConfigManager(self.config_path, required=True)

    def test_values_from_file(self):
        self._write_config({
            "provider": {"url": "https://mirror.example/api/get", "timeout": 3, "max_versions": 2},
            "sync": {"resync_delay": 1.5},
            "prefetch": {"enabled": False, "max_items": 5},
            "storage": {"data_dir": "/tmp/lyrics"},
            "export": {"directory": "/tmp/out"},
            "logging": {"level": "DEBUG"},
        })

        config = ConfigManager(self.config_path)

        self.assertEqual(config.get_provider_url(), "https://mirror.example/api/get")
        self.assertEqual(config.get_provider_timeout(), 3.0)
        self.assertEqual(config.get_max_versions(), 2)
        self.assertEqual(config.get_resync_delay(), 1.5)
        self.assertFalse(config.is_prefetch_enabled())
        self.assertEqual(config.get_prefetch_max_items(), 5)
        self.assertEqual(config.get_data_dir(), "/tmp/lyrics")
        self.assertEqual(config.get_export_dir(), "/tmp/out")
        self.assertEqual(config.get_log_level(), "DEBUG")

    def test_dot_notation_get(self):
        self._write_config({"provider": {"user_agent": "custom/2.0"}})
        config = ConfigManager(self.config_path)

        self.assertEqual(config.get("provider.user_agent"), "custom/2.0")
        self.assertEqual(config.get("provider.missing", "fallback"), "fallback")
        self.assertEqual(config.get("provider.user_agent.deeper", 1), 1)

    def test_invalid_numbers_fall_back_to_defaults(self):
        self._write_config({
            "provider": {"timeout": "slow", "max_versions": -1},
            "prefetch": {"max_items": 0, "delay": True},
        })
        config = ConfigManager(self.config_path)

        self.assertEqual(config.get_provider_timeout(), 10.0)
        self.assertEqual(config.get_max_versions(), 0)
        self.assertEqual(config.get_prefetch_max_items(), 20)
        self.assertEqual(config.get_prefetch_delay(), 0.15)

    def test_empty_file(self):
        open(self.config_path, "w").close()
        config = ConfigManager(self.config_path)
        self.assertEqual(config.config, {})

    def test_invalid_yaml_raises(self):
        with open(self.config_path, "w", encoding="utf-8") as f:
            f.write("provider: [unclosed")
        with self.assertRaises(yaml.YAMLError):
            ConfigManager(self.config_path)


if __name__ == '__main__':
    unittest.main()
