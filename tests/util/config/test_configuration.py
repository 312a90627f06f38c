from __future__ import annotations

import os

import pytest

from kanjisabi.util.config import configuration
from kanjisabi.util.config.configuration import (
    DEFAULT_LINDERA_ADDRESS,
    DEFAULT_MORPH_SERVICE_ADDRESS,
    DICTIONARY_AUTO,
    Config,
    MorphService,
    Pipeline,
    UnanchoredBoxStrategy,
    get_config,
    load_config,
    parse_address,
    reload_config,
)


def test_defaults():
    cfg = Config()

    assert cfg.lindera.server_address == DEFAULT_LINDERA_ADDRESS == "0.0.0.0:3333"
    assert cfg.morph_service.api_address == DEFAULT_MORPH_SERVICE_ADDRESS == "0.0.0.0:55555"
    assert cfg.morph_service.connect_attempts == 16
    assert cfg.morph_service.connect_interval == 0.125
    assert cfg.pipeline.confidence_threshold == 80.0
    assert cfg.pipeline.unanchored_strategy == UnanchoredBoxStrategy.INTERPOLATE
    assert cfg.preproc.contrast == 100.0


def test_missing_file_gives_defaults(tmp_path):
    assert load_config(str(tmp_path / "kanjisabi.toml")) == Config()


def test_toml_overrides(tmp_path):
    path = tmp_path / "kanjisabi.toml"
    path.write_text(
        "\n".join([
            "[lindera]",
            'server_address = "127.0.0.1:4444"',
            "[morph_service]",
            'dictionary = "unidic"',
            "[pipeline]",
            "confidence_threshold = 60",
            'unanchored_bbox = "unknown"',
            "use_morph_service = true",
            "[preproc]",
            "contrast = 50",
        ]),
        encoding="utf-8",
    )

    cfg = load_config(str(path))

    assert cfg.lindera.server_address == "127.0.0.1:4444"
    assert cfg.morph_service.dictionary == "unidic"
    assert cfg.morph_service.api_address == DEFAULT_MORPH_SERVICE_ADDRESS
    assert cfg.pipeline.confidence_threshold == 60
    assert cfg.pipeline.unanchored_strategy == UnanchoredBoxStrategy.UNKNOWN
    assert cfg.pipeline.use_morph_service is True
    assert cfg.preproc.contrast == 50


def test_invalid_toml_gives_defaults(tmp_path):
    path = tmp_path / "kanjisabi.toml"
    path.write_text("[lindera\nserver_address = ", encoding="utf-8")

    assert load_config(str(path)) == Config()


def test_invalid_values_are_normalized():
    assert MorphService(dictionary="jumandic").dictionary == DICTIONARY_AUTO
    assert MorphService(connect_attempts=0).connect_attempts == 1
    assert Pipeline(unanchored_bbox="guess").unanchored_strategy == UnanchoredBoxStrategy.INTERPOLATE


def test_get_config_reads_the_user_config_directory():
    path = configuration.get_config_path()
    with open(path, "w", encoding="utf-8") as f:
        f.write('[pipeline]\nconfidence_threshold = 70\n')
    try:
        assert get_config().pipeline.confidence_threshold == 70
        assert get_config() is get_config()
    finally:
        configuration.config_instance = None
        os.remove(path)


def test_reload_config_replaces_the_cached_instance(tmp_path):
    first = get_config()
    path = tmp_path / "kanjisabi.toml"
    path.write_text('[lindera]\nserver_address = "10.0.0.2:3333"\n', encoding="utf-8")

    reloaded = reload_config(str(path))

    assert reloaded is not first
    assert get_config().lindera.server_address == "10.0.0.2:3333"


@pytest.mark.parametrize("address, expected", [
    ("0.0.0.0:3333", ("0.0.0.0", 3333)),
    ("localhost:55555", ("localhost", 55555)),
    ("[::1]:55555", ("::1", 55555)),
])
def test_parse_address(address, expected):
    assert parse_address(address) == expected


@pytest.mark.parametrize("address", ["localhost", ":3333", "host:port", "host:70000"])
def test_parse_address_rejects_invalid(address):
    with pytest.raises(ValueError):
        parse_address(address)
