import json

import httpx
import pytest

from bt.http import ApiClient

API_URL = "https://api.test"


class FakeApi:
    """Routes requests by (method, path) to canned responses and records them."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], tuple[int, dict]] = {}

    def route(self, method: str, path: str, payload=None, *, status: int = 200, text: str | None = None):
        body = {"text": text} if text is not None else {"json": payload}
        self._routes[(method, path)] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, text=f"no route for {request.method} {request.url.path}")
        status, body = route
        return httpx.Response(status, **body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self, org_name: str = "acme") -> ApiClient:
        return ApiClient(API_URL, "sk-test", org_name, transport=self.transport)

    def last_json(self):
        return json.loads(self.requests[-1].content)


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    """Keep tests away from the user's ~/.bt and BRAINTRUST_* settings."""
    config_dir = tmp_path / "bt-config"
    monkeypatch.setenv("BT_CONFIG_DIR", str(config_dir))
    for name in (
        "BRAINTRUST_API_KEY",
        "BRAINTRUST_API_URL",
        "BRAINTRUST_APP_URL",
        "BRAINTRUST_ORG_NAME",
        "BRAINTRUST_DEFAULT_PROJECT",
        "BT_TUI_WRITE_LOG",
        "BT_LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)
    return config_dir
