"""
Cache Proxy — End-to-End Proxy Tests

Exercises a realistic client object through the proxy with factory-built
stores, metrics hooks and JSON logging.
"""

import asyncio
import json
import logging
from typing import Any

import pytest
from pydantic import BaseModel

from cache_proxy import (
    MISSING,
    JSONFormatter,
    Persist,
    ProxyMetrics,
    Skip,
    cache_proxy,
    close_all_stores,
    create_store,
    global_cached,
    unwrap,
)
from cache_proxy.config import StoreConfig
from cache_proxy.memo import ProcessMemo


class RepoRef(BaseModel):
    owner: str
    repo: str


class ReposApi:
    def __init__(self, http: "FakeHttp"):
        self._http = http

    async def get(self, owner: str, repo: str) -> dict[str, Any]:
        return await self._http.request("GET", f"/repos/{owner}/{repo}")

    async def get_ref(self, ref: RepoRef) -> dict[str, Any]:
        return await self._http.request("GET", f"/repos/{ref.owner}/{ref.repo}")

    async def list_for_user(self, user: str, per_page: int = 30) -> list[dict[str, Any]]:
        return await self._http.request("GET", f"/users/{user}/repos?per_page={per_page}")


class FakeHttp:
    def __init__(self) -> None:
        self.requests: list[str] = []

    async def request(self, method: str, path: str) -> Any:
        self.requests.append(f"{method} {path}")
        await asyncio.sleep(0)
        if path.startswith("/users/"):
            return [{"path": path}]
        return {"path": path, "stars": len(self.requests)}


class GitHubClient:
    base_url = "https://api.github.com"
    timeout = 10.0

    def __init__(self) -> None:
        self.http = FakeHttp()
        self.repos = ReposApi(self.http)

    def rate_limit(self) -> dict[str, int]:
        return {"remaining": 5000 - len(self.http.requests)}


@pytest.fixture
async def shared_store(memo: ProcessMemo):
    store = create_store(StoreConfig(namespace="e2e"), name="e2e", memo=memo)
    yield store
    await close_all_stores(memo)


class TestProxyWithStores:
    """End-to-end behaviour through factory-built stores."""

    async def test_nested_client_calls_are_cached(self, shared_store: Any) -> None:
        client = GitHubClient()
        gh = cache_proxy(shared_store, ttl=600_000, prefix="github.")(client)

        first = await gh.repos.get("octo", "hello")
        second = await gh.repos.get("octo", "hello")

        assert first == second
        assert client.http.requests == ["GET /repos/octo/hello"]
        assert await shared_store.get('github.repos.get("octo","hello")') == first

    async def test_keyword_and_model_arguments(self, shared_store: Any) -> None:
        client = GitHubClient()
        gh = cache_proxy(shared_store, prefix="github.")(client)

        await gh.repos.list_for_user("octo", per_page=5)
        await gh.repos.list_for_user("octo", per_page=5)
        await gh.repos.get_ref(RepoRef(owner="octo", repo="hello"))
        await gh.repos.get_ref(RepoRef(owner="octo", repo="hello"))

        assert len(client.http.requests) == 2
        assert await shared_store.exists('github.repos.get_ref({"owner":"octo","repo":"hello"})')

    async def test_data_attributes_pass_through(self, shared_store: Any) -> None:
        gh = cache_proxy(shared_store)(GitHubClient())

        assert gh.base_url == "https://api.github.com"
        assert gh.timeout == 10.0
        assert (await shared_store.get_stats())["size"] == 0

    async def test_two_proxies_share_entries(self, shared_store: Any) -> None:
        client = GitHubClient()
        wrap = cache_proxy(shared_store, prefix="github.")

        await wrap(client).rate_limit()
        await wrap(client).rate_limit()

        assert (await shared_store.get_stats())["hits"] == 1

    async def test_metrics_and_selective_persistence(self, shared_store: Any) -> None:
        metrics = ProxyMetrics()

        async def on_fetched(key: str, value: Any) -> Any:
            metrics.on_fetched(key, value)
            # Rate limits change constantly
            if key.endswith("rate_limit()"):
                return Skip()
            return Persist(ttl=60_000)

        client = GitHubClient()
        gh = cache_proxy(shared_store, ttl=600_000, on_cached=metrics.on_cached, on_fetched=on_fetched)(client)

        await gh.rate_limit()
        await gh.rate_limit()
        await gh.repos.get("octo", "hello")
        await gh.repos.get("octo", "hello")

        assert await shared_store.get("rate_limit()") is MISSING
        assert metrics.snapshot() == {"calls": 4, "hits": 1, "misses": 3, "fetches": 3, "hit_rate": 25.0}

    async def test_memoized_proxy_survives_rebuild(self, memo: ProcessMemo, shared_store: Any) -> None:
        """A proxy kept in a ProcessMemo is reused instead of rebuilt."""

        def build() -> Any:
            return cache_proxy(shared_store, prefix="github.")(GitHubClient())

        gh = global_cached("github", build, memo=memo)
        assert global_cached("github", build, memo=memo) is gh

        await gh.repos.get("octo", "hello")
        await global_cached("github", build, memo=memo).repos.get("octo", "hello")
        assert unwrap(gh).http.requests == ["GET /repos/octo/hello"]

    async def test_json_logging_of_proxy_activity(self, shared_store: Any) -> None:
        lines: list[str] = []

        class Collect(logging.Handler):
            def emit(self, record: logging.LogRecord) -> None:
                lines.append(self.format(record))

        handler = Collect()
        handler.setFormatter(JSONFormatter())
        proxy_logger = logging.getLogger("cache_proxy.proxy")
        previous_level = proxy_logger.level
        proxy_logger.addHandler(handler)
        proxy_logger.setLevel(logging.DEBUG)
        try:
            gh = cache_proxy(shared_store, prefix="github.")(GitHubClient())
            await gh.rate_limit()
        finally:
            proxy_logger.removeHandler(handler)
            proxy_logger.setLevel(previous_level)

        records = [json.loads(line) for line in lines]
        assert {r["cache_key"] for r in records} == {"github.rate_limit()"}
        assert any(r["message"].startswith("Cache miss") for r in records)
        assert any(r["message"].startswith("Stored") for r in records)
