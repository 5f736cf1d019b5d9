"""テスト共通のフィクスチャ"""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest
from flaggate import FlagGateError, FlagGateErrorCodes, HttpFlagStoreClient, InMemoryFlagStore

BASE_URL = "http://flag-store:3000/api"

_STATUS_BY_CODE = {
    FlagGateErrorCodes.FLAG_NOT_FOUND: 404,
    FlagGateErrorCodes.RULE_NOT_FOUND: 404,
    FlagGateErrorCodes.INVALID_ARGUMENT: 400,
    FlagGateErrorCodes.FLAG_ALREADY_EXISTS: 409,
}


class FlagStoreApp:
    """InMemoryFlagStore を REST API として公開する httpx 用ハンドラー。

    evaluate_status を設定すると評価エンドポイントがそのステータスを返す。
    """

    def __init__(self, store: InMemoryFlagStore) -> None:
        self.store = store
        self.evaluate_status: int | None = None
        self.requests: list[tuple[str, str]] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api").strip("/").split("/")
        self.requests.append((request.method, "/" + "/".join(path)))
        body: dict[str, Any] = json.loads(request.content) if request.content else {}
        try:
            return await self._dispatch(request.method, path[1:], body)
        except FlagGateError as e:
            return httpx.Response(_STATUS_BY_CODE.get(e.code, 500), json={"error": str(e)})

    async def _dispatch(
        self, method: str, parts: list[str], body: dict[str, Any]
    ) -> httpx.Response:
        if not parts:
            if method == "GET":
                flags = await self.store.list_flags()
                return httpx.Response(200, json=[f.to_dict() for f in flags])
            if method == "POST":
                flag = await self.store.create_flag(
                    body["name"], body.get("description"), body.get("enabled", False)
                )
                return httpx.Response(201, json=flag.to_dict())
        elif len(parts) == 1:
            flag_id = parts[0]
            if method == "GET":
                return httpx.Response(200, json=(await self.store.get_flag(flag_id)).to_dict())
            if method == "PUT":
                fields = {"rules_logic" if k == "rulesLogic" else k: v for k, v in body.items()}
                flag = await self.store.update_flag(flag_id, **fields)
                return httpx.Response(200, json=flag.to_dict())
            if method == "DELETE":
                await self.store.delete_flag(flag_id)
                return httpx.Response(204)
        elif parts[1] == "rules" and len(parts) == 2 and method == "POST":
            rule = await self.store.add_rule(
                parts[0], body["attribute"], body["operator"], body["value"]
            )
            return httpx.Response(201, json=rule.to_dict())
        elif parts[1] == "rules" and len(parts) == 3 and method == "DELETE":
            await self.store.remove_rule(parts[0], parts[2])
            return httpx.Response(204)
        elif parts[1] == "evaluate" and method == "POST":
            if self.evaluate_status is not None:
                return httpx.Response(self.evaluate_status, json={"error": "forced failure"})
            enabled = await self.store.evaluate(parts[0], body.get("user", {}))
            return httpx.Response(200, json={"enabled": enabled})
        return httpx.Response(404, json={"error": "route not found"})


@pytest.fixture
def store() -> InMemoryFlagStore:
    return InMemoryFlagStore()


@pytest.fixture
def app(store: InMemoryFlagStore) -> FlagStoreApp:
    return FlagStoreApp(store)


@pytest.fixture
def http_store(app: FlagStoreApp) -> HttpFlagStoreClient:
    return HttpFlagStoreClient(BASE_URL, transport=httpx.MockTransport(app))
