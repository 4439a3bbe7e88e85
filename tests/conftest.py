"""Shared fixtures for blueprint-codec tests."""

import json

import pytest

from blueprint_codec.cli_config import reset_config
from blueprint_codec.error_handling import setup_error_handling


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep config discovery and env overrides away from the real machine."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    for key in [
        "BLUEPRINT_CODEC_CASE_SENSITIVE",
        "BLUEPRINT_CODEC_FAIL_ON_ERRORS",
        "BLUEPRINT_CODEC_OUTPUT_FORMAT",
        "BLUEPRINT_CODEC_MAX_FILE_SIZE_MB",
        "BLUEPRINT_CODEC_MAX_LINE_LENGTH",
        "BLUEPRINT_CODEC_LOG_LEVEL",
    ]:
        monkeypatch.delenv(key, raising=False)
    reset_config()
    setup_error_handling()
    yield
    reset_config()


@pytest.fixture
def temp_dir(tmp_path):
    work = tmp_path / "work"
    work.mkdir()
    return work


@pytest.fixture
def sample_blueprint_data():
    return {
        "BLUEPRINT": "vision-service",
        "NAME": "vision",
        "TYPE": "image",
        "VERSION": "1.2.0",
        "ENVIRONMENT": "python3.11",
        "WORKDIR": "/app",
        "CMD": ["pip install -r requirements.txt", "python serve.py"],
        "DEPEND": [
            "- [PyPI] numpy [1.26.4]",
            "| [Apt] curl [7.81.0] {} {}",
            "- [LOCAL] ./vendor/lib [v2]",
        ],
        "ENVVAR": ["PATH=/usr/bin=/usr/local/bin", "DEBUG="],
    }


@pytest.fixture
def sample_blueprint(temp_dir, sample_blueprint_data):
    path = temp_dir / "blueprint.json"
    path.write_text(json.dumps(sample_blueprint_data, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def broken_blueprint(temp_dir, sample_blueprint_data):
    data = dict(sample_blueprint_data)
    data["DEPEND"] = ["- [PyPI] a [1]", "garbage", "- [Apt] b [2]"]
    data["ENVVAR"] = ["API_TOKEN=abcdef123456", "NO_SEPARATOR"]
    path = temp_dir / "broken.json"
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path
