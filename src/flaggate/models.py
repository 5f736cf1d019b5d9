"""flaggate データモデル"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, TypeAlias

ContextValue: TypeAlias = str | int | float | bool
EvaluationContext: TypeAlias = Mapping[str, ContextValue | None]


class RulesLogic(StrEnum):
    """ルールの結合方式。"""

    ANY = "ANY"
    ALL = "ALL"


class RuleOperator(StrEnum):
    """ルール演算子。"""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


@dataclass
class Rule:
    """フラグに属する評価ルール。

    operator は RuleOperator の値だが、未知の演算子を含むデータも
    読み込めるよう str で保持する（評価結果は常に False）。
    """

    id: str
    attribute: str
    operator: str
    value: str
    flag_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Rule:
        """API レスポンス辞書から Rule を生成する。"""
        flag_id = data.get("flagId", data.get("FlagId"))
        return cls(
            id=str(data["id"]),
            attribute=data["attribute"],
            operator=data["operator"],
            value=str(data["value"]),
            flag_id=str(flag_id) if flag_id is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "attribute": self.attribute,
            "operator": self.operator,
            "value": self.value,
            "flagId": self.flag_id,
        }


@dataclass
class Flag:
    """フィーチャーフラグ。"""

    id: str
    name: str
    description: str | None = None
    enabled: bool = False
    rules_logic: str = RulesLogic.ANY
    rules: list[Rule] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Flag:
        """API レスポンス辞書から Flag を生成する。

        ルールは "rules" / "Rules" のどちらのキーでも受け付ける。
        """
        raw_rules = data.get("rules", data.get("Rules")) or []
        return cls(
            id=str(data["id"]),
            name=data["name"],
            description=data.get("description"),
            enabled=bool(data.get("enabled", False)),
            rules_logic=data.get("rulesLogic") or RulesLogic.ANY,
            rules=[Rule.from_dict(r) for r in raw_rules],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "enabled": self.enabled,
            "rulesLogic": str(self.rules_logic),
            "rules": [r.to_dict() for r in self.rules],
        }


# update_flag で変更可能なフィールドと API 上の名前
FLAG_UPDATE_FIELDS: dict[str, str] = {
    "enabled": "enabled",
    "description": "description",
    "rules_logic": "rulesLogic",
}
