"""InMemoryFlagStore 実装"""

from __future__ import annotations

import copy
import uuid
from typing import Any

from .client import FlagStoreClient
from .evaluator import evaluate_flag
from .exceptions import FlagGateError, FlagGateErrorCodes
from .models import FLAG_UPDATE_FIELDS, EvaluationContext, Flag, Rule, RuleOperator, RulesLogic


class InMemoryFlagStore(FlagStoreClient):
    """インメモリのフラグストア。

    フラグ名の一意性、演算子と結合方式の値域を検証し、
    フラグ削除時には所属するルールも削除する。返すオブジェクトは複製。
    """

    def __init__(self) -> None:
        self._flags: dict[str, Flag] = {}

    def _require_flag(self, flag_id: str) -> Flag:
        flag = self._flags.get(flag_id)
        if flag is None:
            raise FlagGateError(
                code=FlagGateErrorCodes.FLAG_NOT_FOUND,
                message=f"Flag not found: {flag_id}",
            )
        return flag

    def _check_name_available(self, name: str) -> None:
        if any(flag.name == name for flag in self._flags.values()):
            raise FlagGateError(
                code=FlagGateErrorCodes.FLAG_ALREADY_EXISTS,
                message=f"Flag name already exists: {name}",
            )

    async def list_flags(self) -> list[Flag]:
        return [copy.deepcopy(flag) for flag in self._flags.values()]

    async def get_flag(self, flag_id: str) -> Flag:
        return copy.deepcopy(self._require_flag(flag_id))

    async def create_flag(
        self,
        name: str,
        description: str | None = None,
        enabled: bool = False,
    ) -> Flag:
        if not name:
            raise FlagGateError(
                code=FlagGateErrorCodes.INVALID_ARGUMENT,
                message="Flag name is required",
            )
        self._check_name_available(name)
        flag = Flag(id=str(uuid.uuid4()), name=name, description=description, enabled=enabled)
        self._flags[flag.id] = flag
        return copy.deepcopy(flag)

    async def update_flag(self, flag_id: str, **fields: Any) -> Flag:
        flag = self._require_flag(flag_id)
        unknown = set(fields) - set(FLAG_UPDATE_FIELDS)
        if unknown:
            raise FlagGateError(
                code=FlagGateErrorCodes.INVALID_ARGUMENT,
                message=f"Unknown flag fields: {', '.join(sorted(unknown))}",
            )
        if "rules_logic" in fields:
            try:
                fields["rules_logic"] = RulesLogic(fields["rules_logic"])
            except ValueError as e:
                raise FlagGateError(
                    code=FlagGateErrorCodes.INVALID_ARGUMENT,
                    message=f"Invalid rules logic: {fields['rules_logic']}",
                    cause=e,
                ) from e
        if "enabled" in fields:
            fields["enabled"] = bool(fields["enabled"])
        for key, value in fields.items():
            setattr(flag, key, value)
        return copy.deepcopy(flag)

    async def delete_flag(self, flag_id: str) -> None:
        self._require_flag(flag_id)
        del self._flags[flag_id]

    async def add_rule(
        self,
        flag_id: str,
        attribute: str,
        operator: str,
        value: str,
    ) -> Rule:
        flag = self._require_flag(flag_id)
        if not attribute:
            raise FlagGateError(
                code=FlagGateErrorCodes.INVALID_ARGUMENT,
                message="Rule attribute is required",
            )
        try:
            op = RuleOperator(operator)
        except ValueError as e:
            raise FlagGateError(
                code=FlagGateErrorCodes.INVALID_ARGUMENT,
                message=f"Invalid rule operator: {operator}",
                cause=e,
            ) from e
        rule = Rule(
            id=str(uuid.uuid4()),
            attribute=attribute,
            operator=op,
            value=str(value),
            flag_id=flag.id,
        )
        flag.rules.append(rule)
        return copy.deepcopy(rule)

    async def remove_rule(self, flag_id: str, rule_id: str) -> None:
        flag = self._require_flag(flag_id)
        for index, rule in enumerate(flag.rules):
            if rule.id == rule_id:
                del flag.rules[index]
                return
        raise FlagGateError(
            code=FlagGateErrorCodes.RULE_NOT_FOUND,
            message=f"Rule not found: {rule_id}",
        )

    async def evaluate(self, flag_id: str, context: EvaluationContext) -> bool:
        return evaluate_flag(self._require_flag(flag_id), context)
