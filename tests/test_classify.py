import pytest
import requests

from conftest import DummyResponse, load_fixture

from shopify_gql_client.classify import (
    Envelope,
    check_envelope,
    classify_exception,
    classify_response,
    decode_data,
    is_retryable,
)
from shopify_gql_client.errors import (
    STATUS_ERRORS,
    CostExceededError,
    DecodeError,
    ForbiddenError,
    GatewayTimeoutError,
    GraphQLErrorRecord,
    InternalServerError,
    LockedError,
    NotFoundError,
    PaymentRequiredError,
    ProtocolError,
    ServiceUnavailableError,
    ThrottledError,
    TransportError,
    UnauthorizedError,
    UnexpectedStatusError,
)

EXPECTED = {
    402: PaymentRequiredError,
    423: LockedError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    500: InternalServerError,
    503: ServiceUnavailableError,
    504: GatewayTimeoutError,
}


@pytest.mark.parametrize("status", sorted(EXPECTED))
def test_known_status_maps_to_exact_class(status):
    with pytest.raises(Exception) as exc:
        classify_response(DummyResponse(status, {"data": {}}, text="body"))
    assert type(exc.value) is EXPECTED[status]
    assert exc.value.status_code == status


def test_status_table_is_complete():
    assert STATUS_ERRORS == EXPECTED


def test_only_503_and_504_statuses_are_retryable():
    retryable = {code for code, cls in STATUS_ERRORS.items() if is_retryable(cls())}
    assert retryable == {503, 504}


def test_unexpected_status_carries_truncated_body():
    with pytest.raises(UnexpectedStatusError) as exc:
        classify_response(DummyResponse(418, {}, text="t" * 2000))
    assert exc.value.status_code == 418
    assert exc.value.body == "t" * 500
    assert not is_retryable(exc.value)


def test_status_checked_before_body():
    class Exploding(DummyResponse):
        def json(self):  # type: ignore[override]
            raise AssertionError("body must not be decoded")

    with pytest.raises(UnauthorizedError):
        classify_response(Exploding(401, {}))


def test_envelope_must_be_object():
    with pytest.raises(DecodeError) as exc:
        classify_response(DummyResponse(200, ["not", "an", "object"], text='["not"]'))
    assert exc.value.stage == "envelope"


def test_envelope_parses_error_records():
    envelope = classify_response(DummyResponse(200, load_fixture("cost_exceeded.json")))
    assert envelope.data is None
    first, second = envelope.errors
    assert first.locations[0].line == 2
    assert first.locations[0].column == 3
    assert second.extensions.code == "MAX_COST_EXCEEDED"
    assert second.extensions.cost == 2003
    assert second.extensions.max_cost == 1000
    assert second.extensions.documentation.startswith("https://")


def test_loose_error_records_still_parse():
    body = {
        "errors": [
            {"message": "odd", "extensions": "nope", "locations": [{"line": None, "column": "x"}]},
            {"message": "odder", "extensions": {"cost": None, "maxCost": "n/a"}, "locations": 7},
        ]
    }
    envelope = classify_response(DummyResponse(200, body))
    first, second = envelope.errors
    assert first.extensions.code == ""
    assert (first.locations[0].line, first.locations[0].column) == (0, 0)
    assert (second.extensions.cost, second.extensions.max_cost) == (0, 0)
    assert second.locations == ()
    with pytest.raises(ProtocolError) as exc:
        check_envelope(envelope)
    assert exc.value.messages == ["odd", "odder"]


def test_decode_data_failures_stay_in_taxonomy():
    with pytest.raises(DecodeError) as exc:
        decode_data({"edges": []}, lambda d: d["edges"][0])
    assert exc.value.stage == "data"
    assert isinstance(exc.value.__cause__, IndexError)


def test_cost_exceeded_wins_regardless_of_position():
    records = (
        GraphQLErrorRecord("Throttled"),
        GraphQLErrorRecord.from_dict({"message": "too big", "extensions": {"code": "MAX_COST_EXCEEDED"}}),
    )
    with pytest.raises(CostExceededError) as exc:
        check_envelope(Envelope(errors=records))
    assert str(exc.value) == "Throttled"
    assert len(exc.value.errors) == 2


def test_throttled_sentinel():
    with pytest.raises(ThrottledError):
        check_envelope(Envelope(errors=(GraphQLErrorRecord("Throttled"),)))


def test_generic_protocol_error_keeps_order():
    records = (GraphQLErrorRecord("one"), GraphQLErrorRecord("two"))
    with pytest.raises(ProtocolError) as exc:
        check_envelope(Envelope(data={"x": 1}, errors=records))
    assert type(exc.value) is ProtocolError
    assert exc.value.messages == ["one", "two"]
    assert not is_retryable(exc.value)


def test_no_errors_passes():
    check_envelope(Envelope(data={"x": 1}))


@pytest.mark.parametrize(
    "exc, timeout, temporary",
    [
        (requests.exceptions.ReadTimeout("slow"), True, False),
        (requests.exceptions.ConnectTimeout("slow"), True, False),
        (requests.exceptions.ConnectionError("reset"), False, True),
        (TimeoutError("slow"), True, False),
        (ConnectionResetError("reset"), False, True),
    ],
)
def test_transient_transport_failures(exc, timeout, temporary):
    err = classify_exception(exc)
    assert isinstance(err, TransportError)
    assert (err.timeout, err.temporary) == (timeout, temporary)
    assert is_retryable(err)


def test_other_transport_failures_are_terminal():
    err = classify_exception(requests.exceptions.TooManyRedirects("loop"))
    assert isinstance(err, TransportError)
    assert not is_retryable(err)


def test_throttled_transport_message():
    err = classify_exception(Exception("Throttled"))
    assert isinstance(err, ThrottledError)
    assert is_retryable(err)
