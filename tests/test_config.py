import json

from davkit import config

CONFIG = {
    "default": {"webdav_url": "https://dav.example.com/", "webdav_user": "alice"},
    "media": {"inherits": "default", "webdav_url": "https://media.example.com/"},
    "media_backup": {"inherits": "media", "webdav_pass": "pw"},
    "old": {"webdav_url": "https://old.example.com/", "disable": True},
    "all_media": {"contains": ["media", "media_backup", "all_media"]},
}


class TestConfigSection:
    def test_inheritance(self):
        section = config.config_section(CONFIG, "media_backup")
        assert section["webdav_url"] == "https://media.example.com/"
        assert section["webdav_user"] == "alice"
        assert section["webdav_pass"] == "pw"

    def test_missing_section(self):
        assert config.config_section(CONFIG, "nope") == {}


class TestExpandConfigSection:
    def test_plain(self):
        assert config.expand_config_section(CONFIG, "media") == ["media"]

    def test_disabled(self):
        assert config.expand_config_section(CONFIG, "old") == []

    def test_star(self):
        assert "old" not in config.expand_config_section(CONFIG, "*")
        assert "default" in config.expand_config_section(CONFIG, "*")

    def test_contains_is_not_recursive_forever(self):
        assert config.expand_config_section(CONFIG, "all_media") == ["media", "media_backup"]

    def test_glob(self):
        assert config.expand_config_section(CONFIG, "media*") == ["media", "media_backup"]


class TestReadConfig:
    def test_json(self, tmp_path):
        fn = tmp_path / "davkit.conf"
        fn.write_text(json.dumps(CONFIG))
        assert config.read_config(str(fn)) == CONFIG

    def test_missing_file(self, tmp_path):
        assert config.read_config(str(tmp_path / "nope.conf")) == {}

    def test_default_locations(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        (tmp_path / ".config" / "davkit").mkdir(parents=True)
        (tmp_path / ".config" / "davkit" / "davkit.json").write_text(json.dumps(CONFIG))
        assert config.read_config(None) == CONFIG
