import json

import httpx
import pytest
from click.testing import CliRunner

from storyshelf.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def sample_config(tmp_path):
    blocklist = tmp_path / "blocklist.json"
    blocklist.write_text(json.dumps({"global": ["violence"], "en": ["kill"]}), encoding="utf-8")
    config_file = tmp_path / "config.yaml"
    config_file.write_text(f"""
backend:
  base_url: http://backend.test
  max_retries: 0
safety:
  blocklist_path: {blocklist}
  default_language: en
""")
    return config_file


def test_cli_help(runner):
    result = runner.invoke(cli, ['--help'])
    assert result.exit_code == 0
    assert 'check-text' in result.output
    assert 'fetch' in result.output


def test_check_text_accepts(runner, sample_config):
    result = runner.invoke(cli, ['-c', str(sample_config), 'check-text', 'A bunny learns to share'])
    assert result.exit_code == 0
    assert 'OK' in result.output


def test_check_text_rejects(runner, sample_config):
    result = runner.invoke(cli, ['-c', str(sample_config), 'check-text', 'Too much violence', '-l', 'en'])
    assert result.exit_code == 1
    assert 'not appropriate' in result.output
    assert '• A squirrel' in result.output


def test_show_config(runner, sample_config):
    result = runner.invoke(cli, ['-c', str(sample_config), 'show-config'])
    assert result.exit_code == 0
    assert 'http://backend.test' in result.output
    assert 'characters_ttl: 180.0' in result.output


def test_fetch_prints_table(runner, sample_config):
    def handler(request):
        assert request.headers["Authorization"] == "Bearer abc"
        return httpx.Response(200, json={"characters": [{"id": "c1", "name": "Pamuk", "type": "cat"}]})

    result = runner.invoke(
        cli,
        ['-c', str(sample_config), 'fetch', 'characters', '-s', 'u1', '--token', 'abc'],
        obj={'transport': httpx.MockTransport(handler)},
    )
    assert result.exit_code == 0
    assert 'Pamuk' in result.output


def test_fetch_failure(runner, sample_config):
    result = runner.invoke(
        cli,
        ['-c', str(sample_config), 'fetch', 'templates', '-s', 'en'],
        obj={'transport': httpx.MockTransport(lambda request: httpx.Response(500))},
    )
    assert result.exit_code == 1
    assert 'Error' in result.output
