"""HTTP 経由でフラグを管理・評価する結合テスト"""

import httpx
import pytest
from conftest import BASE_URL, FlagStoreApp
from flaggate import FlagGateClient, FlagGateError, FlagGateErrorCodes, HttpFlagStoreClient


async def create_beta(http_store: HttpFlagStoreClient) -> str:
    flag = await http_store.create_flag("beta", "Beta program", enabled=True)
    await http_store.add_rule(flag.id, "plan", "equals", "pro")
    return flag.id


async def test_beta_flag_end_to_end(http_store: HttpFlagStoreClient) -> None:
    """作成したフラグがルールに従って評価されること。"""
    await create_beta(http_store)
    async with FlagGateClient(http_store) as client:
        assert await client.is_enabled("beta", {"plan": "pro"}) is True
        assert await client.is_enabled("beta", {"plan": "free"}) is False
        assert await client.is_enabled("unknown-flag", {}) is False


async def test_evaluate_500_degrades_to_false(
    http_store: HttpFlagStoreClient, app: FlagStoreApp
) -> None:
    """評価エンドポイントが 500 を返した場合は False。"""
    await create_beta(http_store)
    app.evaluate_status = 500
    client = FlagGateClient(http_store)
    assert await client.is_enabled("beta", {"plan": "pro"}) is False
    app.evaluate_status = None
    assert await client.is_enabled("beta", {"plan": "pro"}) is True


async def test_cache_avoids_remote_calls(
    http_store: HttpFlagStoreClient, app: FlagStoreApp
) -> None:
    """キャッシュヒット時はリモート呼び出しが発生しないこと。"""
    flag_id = await create_beta(http_store)
    client = FlagGateClient(http_store)
    app.requests.clear()
    await client.is_enabled("beta", {"plan": "pro"})
    await client.is_enabled("beta", {"plan": "pro"})
    assert app.requests == [("GET", "/flags"), ("POST", f"/flags/{flag_id}/evaluate")]


async def test_rules_logic_all(http_store: HttpFlagStoreClient) -> None:
    """ALL 指定時はすべてのルールを満たす必要があること。"""
    flag_id = await create_beta(http_store)
    await http_store.add_rule(flag_id, "age", "greater_than", "18")
    client = FlagGateClient(http_store)
    assert await client.is_enabled("beta", {"plan": "pro", "age": 10}) is True
    await http_store.update_flag(flag_id, rules_logic="ALL")
    client.clear_cache()
    assert await client.is_enabled("beta", {"plan": "pro", "age": 10}) is False
    assert await client.is_enabled("beta", {"plan": "pro", "age": 30}) is True


async def test_admin_errors_propagate(http_store: HttpFlagStoreClient) -> None:
    """管理操作の失敗は例外として伝播すること。"""
    await create_beta(http_store)
    with pytest.raises(FlagGateError) as exc_info:
        await http_store.create_flag("beta")
    assert exc_info.value.code == FlagGateErrorCodes.HTTP_ERROR
    with pytest.raises(FlagGateError) as exc_info:
        await http_store.delete_flag("missing")
    assert exc_info.value.code == FlagGateErrorCodes.FLAG_NOT_FOUND


async def test_get_flag_includes_rules(http_store: HttpFlagStoreClient) -> None:
    """取得したフラグに所属ルールが含まれること。"""
    flag_id = await create_beta(http_store)
    flag = await http_store.get_flag(flag_id)
    assert flag.description == "Beta program"
    assert [(r.attribute, r.operator, r.value) for r in flag.rules] == [("plan", "equals", "pro")]
    await http_store.remove_rule(flag_id, flag.rules[0].id)
    assert (await http_store.get_flag(flag_id)).rules == []


async def test_separate_clients_do_not_share_cache(app: FlagStoreApp) -> None:
    """クライアントごとにキャッシュが独立していること。"""
    transport = httpx.MockTransport(app)
    first = FlagGateClient(HttpFlagStoreClient(BASE_URL, transport=transport))
    second = FlagGateClient(HttpFlagStoreClient(BASE_URL, transport=transport))
    await first.store.create_flag("beta", enabled=True)
    await first.is_enabled("beta", {})
    assert len(first.cache) == 1
    assert len(second.cache) == 0
    assert "beta" not in second.resolver
