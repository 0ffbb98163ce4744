from dbtunnel.observability.logger import RequestTimer, redact


def test_secret_keys_are_masked():
    payload = {"database": "shop", "connection_string": "AccountEndpoint=x;AccountKey=abc;"}

    assert redact(payload) == {"database": "shop", "connection_string": "***"}


def test_secret_fragments_in_text_are_masked():
    message = "login failed for AccountEndpoint=https://x;AccountKey=c2VjcmV0==; Password=hunter2"

    masked = redact({"error": message})["error"]
    assert "c2VjcmV0" not in masked
    assert "hunter2" not in masked
    assert "AccountEndpoint=https://x" in masked


def test_timer_is_monotonic():
    timer = RequestTimer()
    assert timer.duration() >= 0
    assert timer.elapsed_ms() >= 0
