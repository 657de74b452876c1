from shipment_tracking.api.transport import RequestsTransport


def test_retry_adapter_is_mounted():
    t = RequestsTransport(timeout=5, max_retries=2)
    retry = t.session.get_adapter("https://api.17track.net/track/v2").max_retries

    assert retry.total == 2
    assert 429 in retry.status_forcelist
    assert "POST" in retry.allowed_methods


def test_post_passes_timeout_and_body(monkeypatch):
    t = RequestsTransport(timeout=7)
    seen = {}

    def fake_post(url, **kwargs):
        seen["url"] = url
        seen.update(kwargs)
        return "resp"

    monkeypatch.setattr(t.session, "post", fake_post)

    assert t.post("https://x.test/gettrackinfo", headers={"17token": "k"}, json=[{"number": "1"}]) == "resp"
    assert seen["timeout"] == 7
    assert seen["json"] == [{"number": "1"}]
    assert seen["headers"] == {"17token": "k"}
