import json
import pathlib
import sys
from dataclasses import dataclass

import pytest

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1]))

from shopify_gql_client.transport import Transport

FIXTURES = pathlib.Path(__file__).resolve().parent / "fixtures"


def load_fixture(name):
    with open(FIXTURES / name) as fh:
        return json.load(fh)


@dataclass
class DummyResponse:
    status_code: int
    _json: object
    text: str = ""

    def json(self):
        return self._json


class ListTransport(Transport):
    """Replays canned responses; exceptions in the list are raised."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def post(self, url, headers, data, timeout, auth=None):
        self.calls.append(
            {
                "url": url,
                "headers": dict(headers),
                "body": json.loads(data),
                "timeout": timeout,
                "auth": auth,
            }
        )
        resp = self.responses.pop(0)
        if isinstance(resp, BaseException):
            raise resp
        return resp


@pytest.fixture
def slept(monkeypatch):
    import time

    delays = []
    monkeypatch.setattr(time, "sleep", lambda s: delays.append(s))
    return delays
