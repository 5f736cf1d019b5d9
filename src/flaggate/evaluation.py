"""キャッシュ付きフラグ評価クライアント"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable
from types import TracebackType
from typing import Any, TypeVar

from pydantic import ValidationError

from .cache import MISSING, TtlCache
from .client import FlagStoreClient
from .config import FlagGateConfig
from .exceptions import FlagGateError, FlagGateErrorCodes
from .http_client import HttpFlagStoreClient
from .models import ContextValue, EvaluationContext, Flag
from .resolver import FlagIdResolver

logger = logging.getLogger(__name__)

T = TypeVar("T")


def cache_key(flag_name: str, context: EvaluationContext) -> str:
    """フラグ名とコンテキストから決定的なキャッシュキーを生成する。

    キーの挿入順に依存しないよう、コンテキストはキーをソートした JSON で表す。
    """
    encoded = json.dumps(dict(context), sort_keys=True, separators=(",", ":"), default=str)
    return f"{flag_name}:{encoded}"


class FlagGateClient:
    """フラグ評価クライアント。

    評価結果を TTL 付きでキャッシュし、フラグ名から ID への対応を保持する。
    is_enabled は利用者の誤り（空のフラグ名）以外で例外を送出せず、
    通信失敗・タイムアウト・不正なレスポンス・未知のフラグはすべて False を返す。

    Args:
        store: フラグストアクライアント
        cache_ttl_seconds: 評価結果のキャッシュ有効期間（秒）
        timeout_seconds: リモート呼び出し 1 回あたりの上限時間（秒）
        user: デフォルトの評価コンテキスト
    """

    def __init__(
        self,
        store: FlagStoreClient,
        *,
        cache_ttl_seconds: float = 60.0,
        timeout_seconds: float = 5.0,
        user: EvaluationContext | None = None,
    ) -> None:
        self._store = store
        self._timeout = timeout_seconds
        self._cache: TtlCache[bool] = TtlCache(default_ttl=cache_ttl_seconds)
        self._resolver = FlagIdResolver(self._list_flags)
        self._user: dict[str, ContextValue | None] = dict(user or {})

    @classmethod
    def from_config(cls, config: FlagGateConfig) -> FlagGateClient:
        """設定から HTTP フラグストアを使うクライアントを生成する。"""
        store = HttpFlagStoreClient(
            base_url=config.api_url,
            api_key=config.api_key,
            timeout_seconds=config.timeout_seconds,
        )
        return cls(
            store,
            cache_ttl_seconds=config.cache_ttl_seconds,
            timeout_seconds=config.timeout_seconds,
            user=config.user,
        )

    @classmethod
    def from_url(cls, api_url: str, **options: Any) -> FlagGateClient:
        """URL と任意の設定項目からクライアントを生成する。

        api_url が空の場合は FlagGateError(INVALID_ARGUMENT)。
        """
        try:
            config = FlagGateConfig(api_url=api_url or "", **options)
        except ValidationError as e:
            raise FlagGateError(
                code=FlagGateErrorCodes.INVALID_ARGUMENT,
                message=f"Invalid client options: {e}",
                cause=e,
            ) from e
        return cls.from_config(config)

    @property
    def store(self) -> FlagStoreClient:
        return self._store

    @property
    def cache(self) -> TtlCache[bool]:
        return self._cache

    @property
    def resolver(self) -> FlagIdResolver:
        return self._resolver

    def set_user(self, user: EvaluationContext | None) -> None:
        """デフォルトの評価コンテキストを差し替える。"""
        self._user = dict(user or {})
        logger.debug("User context updated", extra={"user": self._user})

    def get_user(self) -> dict[str, ContextValue | None]:
        return dict(self._user)

    async def _bounded(self, awaitable: Awaitable[T], context: str) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except TimeoutError as e:
            raise FlagGateError(
                code=FlagGateErrorCodes.TIMEOUT,
                message=f"{context}: no response within {self._timeout}s",
                cause=e,
            ) from e

    async def _list_flags(self) -> list[Flag]:
        return await self._bounded(self._store.list_flags(), "list_flags")

    async def is_enabled(
        self, flag_name: str, user: EvaluationContext | None = None
    ) -> bool:
        """フラグが指定コンテキストで有効かを返す。

        user を省略した場合は set_user で設定したコンテキストを使う。
        未知のフラグは False を返し、後から作成されたフラグを検出できるよう
        その結果はキャッシュしない。
        """
        if not flag_name:
            raise FlagGateError(
                code=FlagGateErrorCodes.INVALID_ARGUMENT,
                message="Flag name is required",
            )
        context = self._user if user is None else user

        try:
            key = cache_key(flag_name, context)
            cached = self._cache.get(key)
            if cached is not MISSING:
                logger.debug("Cache hit", extra={"flag_name": flag_name})
                return bool(cached)

            logger.debug("Cache miss, evaluating remotely", extra={"flag_name": flag_name})
            flag_id = await self._resolver.resolve(flag_name)
            if flag_id is None:
                logger.debug("Flag not found", extra={"flag_name": flag_name})
                return False

            result = await self._bounded(
                self._store.evaluate(flag_id, context), f"evaluate({flag_name})"
            )
        except Exception as e:
            logger.warning(
                "Flag evaluation failed, treating as disabled",
                extra={"flag_name": flag_name, "error": str(e)},
            )
            return False

        enabled = bool(result)
        self._cache.set(key, enabled)
        return enabled

    async def get_all_flags(self) -> list[Flag]:
        """全フラグを取得し、フラグ名から ID への対応を更新する。

        取得に失敗した場合は空リストを返す。
        """
        try:
            flags = await self._list_flags()
        except Exception as e:
            logger.warning("Failed to fetch flags", extra={"error": str(e)})
            return []
        self._resolver.remember(flags)
        return flags

    def clear_cache(self) -> None:
        """評価結果のキャッシュを空にする。フラグ ID の対応は保持する。"""
        self._cache.clear()
        logger.debug("Cache cleared")

    def reset_flag_ids(self) -> None:
        """フラグ名から ID への対応を破棄し、次回評価時に再解決させる。"""
        self._resolver.clear()

    async def close(self) -> None:
        await self._store.close()

    async def __aenter__(self) -> FlagGateClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
