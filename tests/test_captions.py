import pytest
from curl_cffi import requests

from cinelaunch.captions import CaptionFetcher, caption_filename
from cinelaunch.errors import DownloadFailed
from fakes import FakeResponse, FakeSession

URL = "http://subs.example/files/Dune.2021.ar.srt"


def test_caption_filename_uses_last_path_segment():
    assert caption_filename(URL) == "Dune.2021.ar.srt"
    assert caption_filename("http://subs.example/a/b%20c.vtt?token=1") == "b c.vtt"


@pytest.mark.parametrize("url", ["http://subs.example/", "http://subs.example"])
def test_caption_filename_rejects_urls_without_a_file(url):
    with pytest.raises(DownloadFailed):
        caption_filename(url)


def test_fetch_creates_scratch_dir_and_writes_file(tmp_path):
    scratch = tmp_path / "vlc-subtitles"
    session = FakeSession({URL: FakeResponse(content=b"1\n00:00:01,000 --> 00:00:02,000\nhi\n")})

    path = CaptionFetcher(scratch, session=session).fetch(URL)

    assert path == scratch / "Dune.2021.ar.srt"
    assert path.read_bytes().startswith(b"1\n00:00:01")
    assert sorted(p.name for p in scratch.iterdir()) == ["Dune.2021.ar.srt"]


def test_fetch_is_idempotent(tmp_path):
    session = FakeSession({URL: FakeResponse(content=b"subtitle")})
    fetcher = CaptionFetcher(tmp_path, session=session)

    first = fetcher.fetch(URL)
    second = fetcher.fetch(URL)

    assert first == second
    assert len(session.calls) == 1


def test_fetch_redownloads_empty_file(tmp_path):
    (tmp_path / "Dune.2021.ar.srt").write_bytes(b"")
    session = FakeSession({URL: FakeResponse(content=b"subtitle")})

    path = CaptionFetcher(tmp_path, session=session).fetch(URL)

    assert path.read_bytes() == b"subtitle"
    assert len(session.calls) == 1


@pytest.mark.parametrize("route", [
    FakeResponse(status_code=404),
    requests.RequestsError("timed out"),
])
def test_fetch_failure_leaves_nothing_behind(tmp_path, route):
    session = FakeSession({URL: route})

    with pytest.raises(DownloadFailed):
        CaptionFetcher(tmp_path, session=session).fetch(URL)
    assert list(tmp_path.iterdir()) == []


def test_write_error_is_download_failed(tmp_path, mocker):
    session = FakeSession({URL: FakeResponse(content=b"subtitle")})
    mocker.patch("cinelaunch.captions.os.replace", side_effect=PermissionError("read-only"))

    with pytest.raises(DownloadFailed, match="read-only"):
        CaptionFetcher(tmp_path, session=session).fetch(URL)
    assert list(tmp_path.iterdir()) == []


def test_empty_body_is_download_failed(tmp_path):
    session = FakeSession({URL: FakeResponse(content=b"")})

    with pytest.raises(DownloadFailed, match="empty"):
        CaptionFetcher(tmp_path, session=session).fetch(URL)
    assert list(tmp_path.iterdir()) == []
