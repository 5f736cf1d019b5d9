"""TtlCache 実装"""

from __future__ import annotations

import time
from typing import Final, Generic, TypeVar

V = TypeVar("V")


class _Missing:
    """キャッシュに値が存在しないことを表す番兵。"""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


class _CacheEntry(Generic[V]):
    __slots__ = ("value", "expires_at")

    def __init__(self, value: V, ttl: float) -> None:
        self.value = value
        self.expires_at = time.monotonic() + ttl

    def is_expired(self) -> bool:
        return time.monotonic() >= self.expires_at


class TtlCache(Generic[V]):
    """エントリごとに有効期限を持つインメモリキャッシュ。

    期限切れのエントリは get で観測された時点で削除される。
    バックグラウンドの掃除は行わないため、期限切れ後に一度も読まれない
    エントリはメモリに残り続ける。

    Args:
        default_ttl: set で ttl を省略した場合の有効期間（秒）
    """

    def __init__(self, default_ttl: float = 60.0) -> None:
        self._default_ttl = default_ttl
        self._store: dict[str, _CacheEntry[V]] = {}

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def get(self, key: str) -> V | _Missing:
        """キーに対応する値を取得する。存在しないか期限切れなら MISSING。"""
        entry = self._store.get(key)
        if entry is None:
            return MISSING
        if entry.is_expired():
            del self._store[key]
            return MISSING
        return entry.value

    def set(self, key: str, value: V, ttl: float | None = None) -> None:
        """値を保存する。既存エントリは上書きする。

        ttl が None または 0 の場合はデフォルト TTL を使う。
        """
        self._store[key] = _CacheEntry(value, ttl or self._default_ttl)

    def delete(self, key: str) -> bool:
        """キーを削除する。削除できたら True。"""
        return self._store.pop(key, None) is not None

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
