"""Shared test fixtures."""

import pytest

from hotline.errors import ProxyError
from hotline.models import IssueRequest, IssueResult
from hotline.providers.base import IssueGateway
from hotline.settings import ProxySettings

API_KEY = "lin_api_supersecret123"
ISSUE_URL = "https://tracker.example/issue/123"


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the fixed window limiter."""

    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self._data: dict[str, tuple[str, float | None]] = {}
        self.closed = False

    def _live(self, key: str) -> tuple[str, float | None] | None:
        entry = self._data.get(key)
        if entry is not None and entry[1] is not None and entry[1] <= self._clock():
            del self._data[key]
            return None
        return entry

    async def get(self, key: str) -> str | None:
        entry = self._live(key)
        return entry[0] if entry else None

    async def set(self, key, value, ex=None, nx=False, xx=False, keepttl=False):
        entry = self._live(key)
        if (nx and entry is not None) or (xx and entry is None):
            return None
        if ex is not None:
            expiry = self._clock() + ex
        elif keepttl and entry is not None:
            expiry = entry[1]
        else:
            expiry = None
        self._data[key] = (str(value), expiry)
        return True

    async def ttl(self, key: str) -> int:
        entry = self._live(key)
        if entry is None:
            return -2
        if entry[1] is None:
            return -1
        return int(entry[1] - self._clock())

    async def aclose(self) -> None:
        self.closed = True


class FakeGateway(IssueGateway):
    def __init__(self, url: str = ISSUE_URL, error: ProxyError | None = None) -> None:
        self.url = url
        self.error = error
        self.requests: list[IssueRequest] = []
        self.closed = False

    async def create_issue(self, request: IssueRequest) -> IssueResult:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return IssueResult(url=self.url, identifier="ENG-123")

    async def aclose(self) -> None:
        self.closed = True


def make_settings(**overrides) -> ProxySettings:
    values = {
        "linear_api_key": API_KEY,
        "linear_team_id": "team_server",
        "linear_project_id": "project_server",
        "rate_limit_max": 3,
        "rate_limit_window": 60,
    }
    values.update(overrides)
    return ProxySettings(**values)  # type: ignore[arg-type]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_redis(clock: FakeClock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def settings() -> ProxySettings:
    return make_settings()
