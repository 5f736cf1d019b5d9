"""フラグストア HTTP クライアント実装"""

from __future__ import annotations

from typing import Any

import httpx

from .client import FlagStoreClient
from .exceptions import FlagGateError, FlagGateErrorCodes
from .models import FLAG_UPDATE_FIELDS, EvaluationContext, Flag, Rule


class HttpFlagStoreClient(FlagStoreClient):
    """httpx を使ったフラグストア HTTP クライアント。

    Args:
        base_url: フラグストアのベース URL（例: "http://flags:3000/api"）
        api_key: 指定時は X-API-Key ヘッダーとして送信する
        timeout_seconds: 1 リクエストあたりのタイムアウト（秒）
        transport: httpx のトランスポート（テスト用）
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url or not base_url.strip():
            raise FlagGateError(
                code=FlagGateErrorCodes.INVALID_ARGUMENT,
                message="Flag store URL is required",
            )
        self._base_url = base_url.rstrip("/")
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if api_key:
            headers["X-API-Key"] = api_key
        self._headers = headers
        self._timeout = timeout_seconds
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def _client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._http

    def _handle_error(
        self,
        resp: httpx.Response,
        context: str,
        not_found_code: str = FlagGateErrorCodes.FLAG_NOT_FOUND,
    ) -> None:
        if resp.status_code == 404:
            raise FlagGateError(
                code=not_found_code,
                message=f"{context}: not found",
            )
        if resp.status_code >= 400:
            raise FlagGateError(
                code=FlagGateErrorCodes.HTTP_ERROR,
                message=f"{context}: HTTP {resp.status_code}: {resp.text}",
            )

    async def _send(
        self,
        method: str,
        path: str,
        context: str,
        not_found_code: str = FlagGateErrorCodes.FLAG_NOT_FOUND,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            resp = await self._client().request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise FlagGateError(
                code=FlagGateErrorCodes.TIMEOUT,
                message=f"{context}: request timed out",
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            raise FlagGateError(
                code=FlagGateErrorCodes.CONNECTION_ERROR,
                message=f"{context}: {e}",
                cause=e,
            ) from e
        self._handle_error(resp, context, not_found_code)
        return resp

    def _decode(self, resp: httpx.Response, context: str, expected: type) -> Any:
        try:
            data = resp.json()
        except ValueError as e:
            raise FlagGateError(
                code=FlagGateErrorCodes.INVALID_RESPONSE,
                message=f"{context}: response is not JSON",
                cause=e,
            ) from e
        if not isinstance(data, expected):
            raise FlagGateError(
                code=FlagGateErrorCodes.INVALID_RESPONSE,
                message=f"{context}: expected {expected.__name__}, got {type(data).__name__}",
            )
        return data

    def _parse_flag(self, data: Any, context: str) -> Flag:
        try:
            return Flag.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise FlagGateError(
                code=FlagGateErrorCodes.INVALID_RESPONSE,
                message=f"{context}: malformed flag: {e}",
                cause=e,
            ) from e

    async def list_flags(self) -> list[Flag]:
        resp = await self._send("GET", "/flags", "list_flags")
        items: list[Any] = self._decode(resp, "list_flags", list)
        return [self._parse_flag(item, "list_flags") for item in items]

    async def get_flag(self, flag_id: str) -> Flag:
        context = f"get_flag({flag_id})"
        resp = await self._send("GET", f"/flags/{flag_id}", context)
        return self._parse_flag(self._decode(resp, context, dict), context)

    async def create_flag(
        self,
        name: str,
        description: str | None = None,
        enabled: bool = False,
    ) -> Flag:
        context = f"create_flag({name})"
        body: dict[str, Any] = {"name": name, "description": description, "enabled": enabled}
        resp = await self._send("POST", "/flags", context, json=body)
        return self._parse_flag(self._decode(resp, context, dict), context)

    async def update_flag(self, flag_id: str, **fields: Any) -> Flag:
        context = f"update_flag({flag_id})"
        unknown = set(fields) - set(FLAG_UPDATE_FIELDS)
        if unknown:
            raise FlagGateError(
                code=FlagGateErrorCodes.INVALID_ARGUMENT,
                message=f"{context}: unknown fields: {', '.join(sorted(unknown))}",
            )
        body = {FLAG_UPDATE_FIELDS[key]: value for key, value in fields.items()}
        resp = await self._send("PUT", f"/flags/{flag_id}", context, json=body)
        return self._parse_flag(self._decode(resp, context, dict), context)

    async def delete_flag(self, flag_id: str) -> None:
        await self._send("DELETE", f"/flags/{flag_id}", f"delete_flag({flag_id})")

    async def add_rule(
        self,
        flag_id: str,
        attribute: str,
        operator: str,
        value: str,
    ) -> Rule:
        context = f"add_rule({flag_id})"
        body = {"attribute": attribute, "operator": operator, "value": value}
        resp = await self._send("POST", f"/flags/{flag_id}/rules", context, json=body)
        data = self._decode(resp, context, dict)
        try:
            return Rule.from_dict(data)
        except (KeyError, TypeError) as e:
            raise FlagGateError(
                code=FlagGateErrorCodes.INVALID_RESPONSE,
                message=f"{context}: malformed rule: {e}",
                cause=e,
            ) from e

    async def remove_rule(self, flag_id: str, rule_id: str) -> None:
        await self._send(
            "DELETE",
            f"/flags/{flag_id}/rules/{rule_id}",
            f"remove_rule({rule_id})",
            not_found_code=FlagGateErrorCodes.RULE_NOT_FOUND,
        )

    async def evaluate(self, flag_id: str, context: EvaluationContext) -> bool:
        label = f"evaluate({flag_id})"
        resp = await self._send(
            "POST", f"/flags/{flag_id}/evaluate", label, json={"user": dict(context)}
        )
        data: dict[str, Any] = self._decode(resp, label, dict)
        return bool(data.get("enabled"))

    async def close(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None
