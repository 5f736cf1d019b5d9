"""FlagIdResolver 実装"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable

from .models import Flag

logger = logging.getLogger(__name__)

FetchFlags = Callable[[], Awaitable[list[Flag]]]


class FlagIdResolver:
    """フラグ名から ID を解決する。

    一度解決した名前は clear / forget されるまでプロセス内で保持され、
    リモート側で名前と ID の対応が変わっても再解決しない。

    Args:
        fetch_flags: 全フラグ一覧を取得するコルーチン関数
    """

    def __init__(self, fetch_flags: FetchFlags) -> None:
        self._fetch_flags = fetch_flags
        self._ids: dict[str, str] = {}

    async def resolve(self, name: str) -> str | None:
        """フラグ名に対応する ID を返す。存在しなければ None。"""
        flag_id = self._ids.get(name)
        if flag_id is not None:
            return flag_id
        logger.debug("Flag id not cached, refreshing listing", extra={"flag_name": name})
        self.remember(await self._fetch_flags())
        return self._ids.get(name)

    def remember(self, flags: Iterable[Flag]) -> None:
        """フラグ一覧から名前と ID の対応を登録する。"""
        for flag in flags:
            self._ids[flag.name] = flag.id

    def forget(self, name: str) -> None:
        self._ids.pop(name, None)

    def clear(self) -> None:
        self._ids.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._ids

    def __len__(self) -> int:
        return len(self._ids)
