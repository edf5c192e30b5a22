from cloudos.core.logging import _redact_secrets


def test_secret_looking_keys_are_masked():
    event = _redact_secrets(None, "info", {
        "event": "login",
        "password": "hunter2",
        "access_token": "eyJhbGciOiJIUzI1NiJ9.payload.sig",
        "user_id": 7,
    })
    assert event["password"] == "***"
    assert event["access_token"] == "eyJh***"
    assert event["user_id"] == 7
    assert event["event"] == "login"
