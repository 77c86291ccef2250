from datetime import datetime, timezone

import pytest

from gribdl import run_download
from gribdl.download.base import BatchReport, GribDownloader
from gribdl.download.dwd import DWDDownloader
from gribdl.download.noaa import NOAADownloader


@pytest.fixture
def config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        f"storage:\n  output_dir: {tmp_path / 'out'}\n  tmp_dir: {tmp_path / 'tmp'}\n"
        "defaults:\n  param: t_2m\n  max_step: 4\n  height: surface\n"
    )
    return str(path)


@pytest.fixture
def fake_run(monkeypatch):
    seen = []

    def run(self, now=None):
        seen.append(self)
        return BatchReport(
            model=self.model,
            run=datetime(2024, 1, 1, tzinfo=timezone.utc),
            steps=list(range(self.max_step)),
        )

    monkeypatch.setattr(GribDownloader, "run", run)
    return seen


def test_unknown_model_exits_with_error(config, capsys):
    assert run_download.main(["--config", config, "dwd", "icon-xx"]) == 1
    err = capsys.readouterr().err
    assert "icon, icon-d2, icon-eu" in err


def test_model_of_other_provider_is_rejected(config, capsys):
    assert run_download.main(["--config", config, "dwd", "gfs"]) == 1
    assert "icon-eu" in capsys.readouterr().err


def test_dwd_defaults_from_config(config, fake_run, capsys):
    assert run_download.main(["--config", config, "dwd", "icon-eu"]) == 0

    (downloader,) = fake_run
    assert isinstance(downloader, DWDDownloader)
    assert downloader.params == ["t_2m"]
    assert downloader.max_step == 4
    assert downloader.regrid is True
    assert "Fetched icon-eu run 2024-01-01 00Z" in capsys.readouterr().out


def test_dwd_options(config, fake_run):
    argv = ["--config", config, "dwd", "icon", "--param", "t_2m,tot_prec",
            "--max-step", "48", "--output", "elsewhere", "--no-regrid"]
    assert run_download.main(argv) == 0

    (downloader,) = fake_run
    assert downloader.params == ["t_2m", "tot_prec"]
    assert downloader.max_step == 48
    assert str(downloader.output_dir) == "elsewhere"
    assert downloader.regrid is False


def test_noaa_height(config, fake_run):
    argv = ["--config", config, "noaa", "gfs", "--param", "TMP", "--height", "2 m above ground"]
    assert run_download.main(argv) == 0

    (downloader,) = fake_run
    assert isinstance(downloader, NOAADownloader)
    assert downloader.height == "2 m above ground"


def test_summary_lists_step_range(config, fake_run, capsys):
    assert run_download.main(["--config", config, "dwd", "icon-eu"]) == 0
    assert "Steps  : 0 to 3 (4 total)" in capsys.readouterr().out


def test_missing_config_file_exits_with_error(tmp_path, capsys):
    missing = str(tmp_path / "nope.yaml")
    assert run_download.main(["--config", missing, "dwd", "icon-eu"]) == 1
    assert "nope.yaml" in capsys.readouterr().err


def test_invalid_config_value_exits_with_error(tmp_path, capsys):
    path = tmp_path / "bad.yaml"
    path.write_text("http:\n  retries: -1\n")
    assert run_download.main(["--config", str(path), "noaa", "gfs"]) == 1
    assert "http.retries" in capsys.readouterr().err
