from datetime import datetime, timezone

import pytest

from conftest import FakeResponse
from gribdl.core.errors import DownloadError, IndexFetchError
from gribdl.download.index import IndexEntry
from gribdl.download.noaa import NOAADownloader, StepJob

UTC = timezone.utc
RUN = datetime(2024, 1, 1, 6, tzinfo=UTC)

IDX = """\
1:0:d=2024010106:PRMSL:mean sea level:7 hour fcst:
2:1000:d=2024010106:TMP:surface:7 hour fcst:
3:2500:d=2024010106:TMP:2 m above ground:7 hour fcst:
4:4000:d=2024010106:UGRD:surface:7 hour fcst:
"""


def make(settings, session, **kwargs):
    kwargs.setdefault("params", "TMP")
    kwargs.setdefault("height", "surface")
    return NOAADownloader("gfs", settings=settings, session=session, sleep=lambda s: None, **kwargs)


def job_for(downloader, step=7):
    return StepJob(step=step, url=downloader.url_for(RUN, step))


def test_one_job_per_step(settings, session):
    downloader = make(settings, session, params="TMP,UGRD")
    jobs = downloader.build_jobs(RUN, [0, 1, 120])
    assert [j.step for j in jobs] == [0, 1, 120]
    assert jobs[2].url.endswith("/gfs.20240101/06/atmos/gfs.t06z.pgrb2.0p25.f120")


def test_default_height_from_settings(settings, session):
    downloader = NOAADownloader("gfs", "TMP", settings=settings, session=session)
    assert downloader.height == "surface"


def test_range_fetch_lands_param_file(settings, session):
    downloader = make(settings, session)
    job = job_for(downloader)
    session.add(f"{job.url}.idx", FakeResponse(200, text=IDX))
    session.add(job.url, FakeResponse(206, [b"GRIB", b"data", b"7777"]))

    outcome = downloader.process(job)

    assert outcome.errors == []
    assert outcome.paths == [settings.output_dir / "gfs.t06z.pgrb2.0p25.f007_TMP_surface.grib2"]
    assert outcome.paths[0].read_bytes() == b"GRIBdata7777"
    url, headers = session.calls[-1]
    assert url == job.url
    assert headers == {"Range": "bytes=1000-2499"}


def test_index_is_fetched_once_per_step(settings, session):
    downloader = make(settings, session, params="TMP,UGRD")
    job = job_for(downloader)
    session.add(f"{job.url}.idx", FakeResponse(200, text=IDX))
    session.add(job.url, FakeResponse(206, [b"GRIB7777"]))

    outcome = downloader.process(job)

    assert len(outcome.paths) == 2
    assert session.calls_to(f"{job.url}.idx") == 1
    ranges = [h["Range"] for url, h in session.calls if url == job.url]
    assert ranges == ["bytes=1000-2499", "bytes=4000-"]


def test_missing_param_does_not_skip_the_rest(settings, session):
    downloader = make(settings, session, params="RH,TMP")
    job = job_for(downloader)
    session.add(f"{job.url}.idx", FakeResponse(200, text=IDX))
    session.add(job.url, FakeResponse(206, [b"GRIB7777"]))

    outcome = downloader.process(job)

    assert len(outcome.errors) == 1
    assert "RH" in str(outcome.errors[0])
    assert [p.name for p in outcome.paths] == ["gfs.t06z.pgrb2.0p25.f007_TMP_surface.grib2"]
    # missing entries are not retried
    assert session.calls_to(job.url) == 1


def test_index_failure_fails_only_that_step(settings, session):
    downloader = make(settings, session)
    job = job_for(downloader)

    outcome = downloader.process(job)

    assert outcome.paths == []
    assert len(outcome.errors) == 1
    assert isinstance(outcome.errors[0], IndexFetchError)
    assert session.calls_to(job.url) == 0


def test_full_content_response_is_rejected(settings, session):
    downloader = make(settings, session)
    job = job_for(downloader)
    session.add(f"{job.url}.idx", FakeResponse(200, text=IDX))
    session.add(job.url, FakeResponse(200, [b"the whole archive"]))

    outcome = downloader.process(job)

    assert len(outcome.errors) == 1
    assert session.calls_to(job.url) == 1 + settings.retries
    assert not list(settings.output_dir.iterdir())


def test_fetch_unit_requires_byte_range(settings, session):
    downloader = make(settings, session)
    unit = downloader.resolve_unit({"TMP": {"surface": IndexEntry(0, 10)}}, "TMP", job_for(downloader))
    assert unit.byte_range == IndexEntry(0, 10)
    with pytest.raises(DownloadError):
        downloader.fetch_unit(unit.__class__(param="TMP", step=7, url=unit.url, height="surface"))


def test_rerun_overwrites(settings, session):
    downloader = make(settings, session)
    job = job_for(downloader)
    session.add(f"{job.url}.idx", FakeResponse(200, text=IDX))
    session.add(job.url, FakeResponse(206, [b"GRIB7777"]))

    first = downloader.process(job).paths[0]
    first.write_bytes(b"old old old old")
    second = downloader.process(job).paths[0]

    assert second == first
    assert second.read_bytes() == b"GRIB7777"
