"""FlagStoreClient 抽象基底クラス"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .models import EvaluationContext, Flag, Rule


class FlagStoreClient(ABC):
    """フラグストアクライアント抽象基底クラス。

    フラグとルールの管理操作、およびサーバー側でのフラグ評価を提供する。
    管理操作の失敗は FlagGateError として呼び出し元へ伝播する。
    """

    @abstractmethod
    async def list_flags(self) -> list[Flag]:
        """全フラグを取得する。"""
        ...

    @abstractmethod
    async def get_flag(self, flag_id: str) -> Flag:
        """ID でフラグを取得する。存在しなければ FLAG_NOT_FOUND。"""
        ...

    @abstractmethod
    async def create_flag(
        self,
        name: str,
        description: str | None = None,
        enabled: bool = False,
    ) -> Flag:
        """フラグを作成する。"""
        ...

    @abstractmethod
    async def update_flag(self, flag_id: str, **fields: Any) -> Flag:
        """フラグの enabled / description / rules_logic を更新する。"""
        ...

    @abstractmethod
    async def delete_flag(self, flag_id: str) -> None:
        """フラグを削除する。所属するルールも削除される。"""
        ...

    @abstractmethod
    async def add_rule(
        self,
        flag_id: str,
        attribute: str,
        operator: str,
        value: str,
    ) -> Rule:
        """フラグにルールを追加する。"""
        ...

    @abstractmethod
    async def remove_rule(self, flag_id: str, rule_id: str) -> None:
        """ルールを削除する。存在しなければ RULE_NOT_FOUND。"""
        ...

    @abstractmethod
    async def evaluate(self, flag_id: str, context: EvaluationContext) -> bool:
        """サーバー側でフラグを評価する。"""
        ...

    async def close(self) -> None:
        """保持しているリソースを解放する。"""
