from starlette.requests import Request

from reno_storage.api.rate_limit import _rate_limit_key


def make_request(headers=None, client=("10.0.0.7", 5123)):
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/keys/sanitize",
        "headers": [(name.encode(), value.encode()) for name, value in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_rate_limit_key_prefers_user_id():
    request = make_request({"x-user-id": "user-42", "x-forwarded-for": "1.2.3.4"})
    assert _rate_limit_key(request) == "user:user-42"


def test_rate_limit_key_uses_first_forwarded_ip():
    request = make_request({"x-forwarded-for": " 1.2.3.4 , 5.6.7.8"})
    assert _rate_limit_key(request) == "ip:1.2.3.4"


def test_rate_limit_key_ignores_blank_forwarded_for():
    request = make_request({"x-forwarded-for": " , 5.6.7.8"})
    assert _rate_limit_key(request) == "ip:10.0.0.7"


def test_rate_limit_key_falls_back_to_remote_address():
    assert _rate_limit_key(make_request()) == "ip:10.0.0.7"
