"""ルール評価とフラグ評価

いずれも副作用のない純粋関数で、評価順序は結果に影響しない。
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable

from .models import ContextValue, EvaluationContext, Flag, Rule, RuleOperator, RulesLogic

_DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INFINITY_RE = re.compile(r"[+-]?Infinity")


def to_number(value: ContextValue | None) -> float:
    """比較用の数値に変換する。変換できない場合は NaN。

    bool は 1/0、None と空文字列は 0、float に収まらない整数は符号付きの無限大として扱う。
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, int | float):
        try:
            return float(value)
        except OverflowError:
            return math.copysign(math.inf, value)
    if not isinstance(value, str):
        return math.nan
    text = value.strip()
    if not text:
        return 0.0
    if _DECIMAL_RE.fullmatch(text):
        return float(text)
    if _INFINITY_RE.fullmatch(text):
        return -math.inf if text.startswith("-") else math.inf
    return math.nan


def to_text(value: ContextValue | None) -> str:
    """部分一致比較用の文字列表現を返す。"""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "-Infinity" if value < 0 else "Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


def evaluate_rule(rule: Rule, context: EvaluationContext) -> bool:
    """単一ルールをコンテキストに対して評価する。

    属性がコンテキストに存在しない場合は演算子に関係なく False。
    値が None の属性は存在する扱いで、文字列 "null" および数値 0 として比較する。
    """
    if rule.attribute not in context:
        return False
    actual = context[rule.attribute]

    operator = rule.operator
    if operator == RuleOperator.EQUALS:
        return isinstance(actual, str) and actual == rule.value
    if operator == RuleOperator.NOT_EQUALS:
        return not (isinstance(actual, str) and actual == rule.value)
    if operator == RuleOperator.CONTAINS:
        return rule.value in to_text(actual)
    # NaN との比較は常に False
    if operator == RuleOperator.GREATER_THAN:
        return to_number(actual) > to_number(rule.value)
    if operator == RuleOperator.LESS_THAN:
        return to_number(actual) < to_number(rule.value)
    return False


def evaluate_rules(
    rules: Iterable[Rule], context: EvaluationContext, logic: str | None = None
) -> bool:
    """ルール群を結合方式に従って評価する。未知の方式は ANY として扱う。"""
    if logic == RulesLogic.ALL:
        return all(evaluate_rule(rule, context) for rule in rules)
    return any(evaluate_rule(rule, context) for rule in rules)


def evaluate_flag(flag: Flag, context: EvaluationContext) -> bool:
    """フラグの最終的な有効/無効を判定する。

    無効なフラグは常に False、ルールを持たない有効なフラグは常に True。
    """
    if not flag.enabled:
        return False
    if not flag.rules:
        return True
    return evaluate_rules(flag.rules, context, flag.rules_logic)
