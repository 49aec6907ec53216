import asyncio
import json

import pytest

from app.providers.errors import MalformedUpstreamPayload, TransportError, UpstreamTimeoutError
from app.services.proxy_service import CORS_HEADERS, get_adapter, handle_request

QUERY = {"indicator": "NGDP_RPCH", "country": "KR", "startYear": "2020", "endYear": "2022"}
MISSING_MSG = "Missing required parameters: indicator, country, startYear, endYear"

WB_BODY = json.dumps(
    [
        {"page": 1, "pages": 1, "per_page": 50, "total": 3},
        [
            {"date": "2022", "value": 3.0},
            {"date": "2021", "value": None},
            {"date": "2020", "value": 5.1},
        ],
    ]
)


def _call(provider, method="GET", query=QUERY):
    return asyncio.run(handle_request(get_adapter(provider), method, query))


def test_unknown_provider_raises():
    with pytest.raises(ValueError):
        get_adapter("ecb")


@pytest.mark.parametrize("provider", ["imf", "worldbank"])
def test_options_short_circuits(provider, fake_fetch):
    """Pre-flight never validates and never calls upstream."""
    env = _call(provider, method="OPTIONS", query=None)
    assert env.status_code == 200
    assert env.body == ""
    assert env.headers == dict(CORS_HEADERS)
    assert fake_fetch.calls == []


@pytest.mark.parametrize("provider", ["imf", "worldbank"])
@pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "PATCH", "HEAD"])
def test_other_methods_are_rejected(provider, method, fake_fetch):
    env = _call(provider, method=method)
    assert env.status_code == 405
    assert json.loads(env.body) == {"error": "Method not allowed"}
    assert env.headers["Access-Control-Allow-Origin"] == "*"
    assert fake_fetch.calls == []


@pytest.mark.parametrize("provider", ["imf", "worldbank"])
@pytest.mark.parametrize("field", ["indicator", "country", "startYear", "endYear"])
def test_any_missing_parameter_is_400(provider, field, fake_fetch):
    dropped = {k: v for k, v in QUERY.items() if k != field}
    emptied = dict(QUERY, **{field: ""})
    for query in (dropped, emptied):
        env = _call(provider, query=query)
        assert env.status_code == 400
        assert json.loads(env.body) == {"error": MISSING_MSG}
    assert fake_fetch.calls == []


def test_no_query_at_all_is_400(fake_fetch):
    env = _call("worldbank", query=None)
    assert env.status_code == 400


def test_worldbank_success_normalizes(fake_fetch):
    fake_fetch.respond(200, WB_BODY)
    env = _call("worldbank")

    assert env.status_code == 200
    assert env.headers == dict(CORS_HEADERS)
    assert json.loads(env.body) == {"values": {"2020": 5.1, "2022": 3.0}}
    assert len(fake_fetch.calls) == 1
    call = fake_fetch.calls[0]
    assert "/country/KOR/indicator/NY.GDP.MKTP.KD.ZG?format=json&date=2020:2022" in call["url"]
    assert call["headers"]["Accept"] == "application/json"


def test_imf_success_passes_body_through(fake_fetch):
    upstream = {"values": {"NGDP_RPCH": {"KR": {"2020": -0.7, "2021": 4.3}}}, "api": {"version": "1"}}
    fake_fetch.respond(200, json.dumps(upstream))
    env = _call("imf")

    assert env.status_code == 200
    assert json.loads(env.body) == upstream
    assert len(fake_fetch.calls) == 1
    assert fake_fetch.calls[0]["url"].endswith("/NGDP_RPCH/KR?periods=2020-2022")


def test_years_are_not_validated(fake_fetch):
    fake_fetch.respond(200, json.dumps([{}, []]))
    env = _call("worldbank", query=dict(QUERY, startYear="2030", endYear="abc"))
    assert env.status_code == 200
    assert json.loads(env.body) == {"values": {}}
    assert fake_fetch.calls[0]["url"].endswith("date=2030:abc")


def test_same_request_twice_gives_same_values(fake_fetch):
    fake_fetch.respond(200, WB_BODY)
    first = json.loads(_call("worldbank").body)
    second = json.loads(_call("worldbank").body)
    assert first["values"] == second["values"]
    assert len(fake_fetch.calls) == 2


def test_imf_non_2xx_becomes_500_with_truncated_body(fake_fetch):
    fake_fetch.respond(404, "e" * 250, reason="Not Found")
    env = _call("imf")
    assert env.status_code == 500
    assert json.loads(env.body) == {
        "error": "Failed to fetch data from IMF API",
        "message": "IMF API error: 404 Not Found. " + "e" * 200,
    }


def test_worldbank_non_200_becomes_structured_500(fake_fetch):
    fake_fetch.respond(502, "<html>" + "b" * 400, reason="Bad Gateway")
    env = _call("worldbank")
    body = json.loads(env.body)
    assert env.status_code == 500
    assert body["error"] == "World Bank API error"
    assert body["message"] == "HTTP 502: Bad Gateway"
    assert body["details"] == ("<html>" + "b" * 400)[:200]


def test_worldbank_bad_shape_includes_raw_data(fake_fetch):
    raw = json.dumps([{"message": [{"id": "175", "key": "Invalid format", "value": "x" * 600}]}])
    fake_fetch.respond(200, raw)
    env = _call("worldbank")
    body = json.loads(env.body)
    assert env.status_code == 500
    assert body["error"] == "Failed to parse World Bank API response"
    assert body["message"] == "Invalid World Bank API response format"
    assert body["rawData"] == raw[:500]


def test_worldbank_non_json_includes_raw_data(fake_fetch):
    fake_fetch.respond(200, "<?xml version='1.0'?><wb:error/>")
    body = json.loads(_call("worldbank").body)
    assert body["error"] == "Failed to parse World Bank API response"
    assert body["rawData"] == "<?xml version='1.0'?><wb:error/>"


def test_imf_non_json_is_500(fake_fetch):
    fake_fetch.respond(200, "not json")
    env = _call("imf")
    body = json.loads(env.body)
    assert env.status_code == 500
    assert body["error"] == "Failed to fetch data from IMF API"
    assert body["message"].startswith("Invalid JSON from IMF API")


def test_timeout_is_500_and_not_retried(fake_fetch):
    fake_fetch.fail(UpstreamTimeoutError("Request took longer than 30 seconds", 30000))
    env = _call("worldbank")
    assert env.status_code == 500
    assert json.loads(env.body) == {
        "error": "World Bank API request timeout",
        "message": "Request took longer than 30 seconds",
    }
    assert len(fake_fetch.calls) == 1


def test_transport_error_is_500_with_code(fake_fetch):
    fake_fetch.fail(TransportError("getaddrinfo ENOTFOUND api.worldbank.org", code="ENOTFOUND"))
    body = json.loads(_call("worldbank").body)
    assert body == {
        "error": "Failed to fetch data from World Bank API",
        "message": "getaddrinfo ENOTFOUND api.worldbank.org",
        "code": "ENOTFOUND",
    }
    assert len(fake_fetch.calls) == 1


def test_imf_transport_error_is_500(fake_fetch):
    fake_fetch.fail(TransportError("connection refused", code="ECONNREFUSED"))
    env = _call("imf")
    assert env.status_code == 500
    assert json.loads(env.body) == {"error": "Failed to fetch data from IMF API", "message": "connection refused"}


@pytest.mark.parametrize("provider", ["imf", "worldbank"])
def test_unexpected_exception_still_yields_json_500(provider, fake_fetch):
    fake_fetch.fail(RuntimeError("boom"))
    env = _call(provider)
    assert env.status_code == 500
    body = json.loads(env.body)
    assert body["message"] == "boom"
    assert env.headers["Content-Type"] == "application/json"


def test_envelope_as_dict_has_lambda_shape(fake_fetch):
    fake_fetch.fail(MalformedUpstreamPayload("bad", raw=""))
    out = _call("worldbank").as_dict()
    assert set(out) == {"statusCode", "headers", "body"}
    assert out["statusCode"] == 500


@pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
def test_worldbank_non_finite_numbers_are_parse_errors(constant, fake_fetch):
    """Browsers reject NaN/Infinity, so they must never reach a 200 body."""
    raw = '[{}, [{"date": "2020", "value": %s}]]' % constant
    fake_fetch.respond(200, raw)
    env = _call("worldbank")
    body = json.loads(env.body)
    assert env.status_code == 500
    assert body["error"] == "Failed to parse World Bank API response"
    assert constant in body["message"]
    assert body["rawData"] == raw


@pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
def test_imf_non_finite_numbers_are_parse_errors(constant, fake_fetch):
    fake_fetch.respond(200, '{"values": {"X": {"KR": {"2020": %s}}}}' % constant)
    env = _call("imf")
    body = json.loads(env.body)
    assert env.status_code == 500
    assert body["error"] == "Failed to fetch data from IMF API"
    assert body["message"].startswith("Invalid JSON from IMF API")


def _strict_loads(text):
    def reject(name):
        raise ValueError(name)

    return json.loads(text, parse_constant=reject)


def test_envelope_never_emits_non_finite_numbers(fake_fetch):
    fake_fetch.respond(200, '[{}, [{"date": "2020", "value": 1.5}, {"date": "2021", "value": 1e400}]]')
    env = _call("worldbank")
    # 1e400 overflows to inf on decode; the encoder refuses it and the handler answers 500.
    assert env.status_code == 500
    assert _strict_loads(env.body)["message"]
