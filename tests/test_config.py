import pytest
from pydantic import ValidationError

from storyshelf.config import BackendConfig, CacheConfig, Config


def test_default_config():
    config = Config()
    assert config.cache.characters_ttl == 180
    assert config.cache.templates_ttl == 300
    assert config.cache.transactions_ttl == 120
    assert config.cache.error_policy == "keep_stale"
    assert config.backend.max_retries == 3
    assert config.safety.default_language == "tr"


def test_config_from_yaml(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("""
cache:
  favorites_ttl: 90
  ordering: latest_wins
backend:
  base_url: https://api.example.com
log_level: DEBUG
""")

    config = Config.from_yaml(config_file)
    assert config.cache.favorites_ttl == 90
    assert config.cache.ordering == "latest_wins"
    assert config.backend.base_url == "https://api.example.com"
    assert config.log_level == "DEBUG"


def test_empty_yaml_gives_defaults(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("")
    assert Config.from_yaml(config_file) == Config()


def test_config_validation():
    with pytest.raises(ValidationError):
        CacheConfig(characters_ttl=0)  # Must be > 0
    with pytest.raises(ValidationError):
        CacheConfig(error_policy="panic")
    with pytest.raises(ValidationError):
        BackendConfig(max_retries=-1)


def test_config_to_yaml(tmp_path):
    config = Config(cache=CacheConfig(templates_ttl=600))
    output_file = tmp_path / "output.yaml"

    config.to_yaml(output_file)

    assert output_file.exists()
    loaded_config = Config.from_yaml(output_file)
    assert loaded_config.cache.templates_ttl == 600
