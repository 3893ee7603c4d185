from urllib.error import HTTPError

from notecraft import probe as probe_module
from notecraft.probe import YouTubeOEmbedProbe


class FakeResponse:
    def __init__(self, status: int):
        self.status = status

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


def test_probe_hits_oembed_with_encoded_url(monkeypatch) -> None:
    requested = []

    def fake_urlopen(url, timeout):
        requested.append((url, timeout))
        return FakeResponse(200)

    monkeypatch.setattr(probe_module, "urlopen", fake_urlopen)

    assert YouTubeOEmbedProbe(timeout_seconds=3).probe("https://youtu.be/abc123") is True
    assert requested == [("https://www.youtube.com/oembed?format=json&url=https%3A%2F%2Fyoutu.be%2Fabc123", 3)]


def test_probe_treats_http_errors_as_unreachable(monkeypatch) -> None:
    def not_found(url, timeout):
        raise HTTPError(url, 404, "Not Found", {}, None)

    monkeypatch.setattr(probe_module, "urlopen", not_found)

    assert YouTubeOEmbedProbe().probe("https://www.youtube.com/watch?v=gone") is False


def test_probe_rejects_empty_url_without_request(monkeypatch) -> None:
    def fail(url, timeout):
        raise AssertionError("should not be called")

    monkeypatch.setattr(probe_module, "urlopen", fail)

    assert YouTubeOEmbedProbe().probe("") is False
