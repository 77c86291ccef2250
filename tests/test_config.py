from pathlib import Path

import pytest

from gribdl.core.config import DEFAULT_CONFIG_PATH, DownloadSettings, load_config


def test_bundled_config_matches_defaults():
    cfg, path = load_config()
    assert path == DEFAULT_CONFIG_PATH
    settings = DownloadSettings.from_config(cfg)
    assert settings.retries == 5
    assert settings.timeout == 60.0
    assert settings.default_param == "t_2m"
    assert settings.default_max_step == 10
    assert settings.default_height == "surface"
    assert settings.regrid is True


def test_explicit_path(tmp_path):
    config = tmp_path / "gribdl.yaml"
    config.write_text(
        "storage:\n"
        "  output_dir: /data/nwp\n"
        "http:\n"
        "  retries: 2\n"
        "  max_concurrency: 3\n"
        "regrid:\n"
        "  enabled: false\n"
    )
    cfg, path = load_config(str(config))
    settings = DownloadSettings.from_config(cfg)

    assert path == config
    assert settings.output_dir == Path("/data/nwp")
    assert settings.retries == 2
    assert settings.max_concurrency == 3
    assert settings.regrid is False
    assert settings.tmp_dir == Path("/tmp/gribdl")


def test_env_override(tmp_path, monkeypatch):
    config = tmp_path / "env.yaml"
    config.write_text("defaults:\n  param: tot_prec\n")
    monkeypatch.setenv("GRIBDL_CONFIG", str(config))

    cfg, path = load_config()
    assert path == config
    assert DownloadSettings.from_config(cfg).default_param == "tot_prec"


def test_empty_file_gives_defaults(tmp_path):
    config = tmp_path / "empty.yaml"
    config.write_text("")
    cfg, _ = load_config(str(config))
    assert DownloadSettings.from_config(cfg) == DownloadSettings()


def test_invalid_values_are_rejected():
    with pytest.raises(ValueError):
        DownloadSettings.from_config({"http": {"retries": -1}})
    with pytest.raises(ValueError):
        DownloadSettings.from_config({"http": {"max_concurrency": 0}})
