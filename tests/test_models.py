"""データモデルのユニットテスト"""

from flaggate import Flag, Rule, RuleOperator, RulesLogic


def test_flag_defaults() -> None:
    """Flag のデフォルト値。"""
    flag = Flag(id="f-1", name="beta")
    assert flag.enabled is False
    assert flag.description is None
    assert flag.rules_logic == RulesLogic.ANY
    assert flag.rules == []


def test_flag_from_dict_with_capitalized_rules_key() -> None:
    """Rules キーのルールも読み込めること。"""
    flag = Flag.from_dict(
        {
            "id": "f-1",
            "name": "beta",
            "enabled": True,
            "rulesLogic": "ALL",
            "Rules": [
                {"id": "r-1", "attribute": "plan", "operator": "equals", "value": "pro", "FlagId": "f-1"}
            ],
        }
    )
    assert flag.rules_logic == RulesLogic.ALL
    assert len(flag.rules) == 1
    assert flag.rules[0].flag_id == "f-1"
    assert flag.rules[0].operator == RuleOperator.EQUALS


def test_flag_from_dict_minimal() -> None:
    """最小限のフィールドから Flag を生成できること。"""
    flag = Flag.from_dict({"id": 7, "name": "legacy", "rulesLogic": None})
    assert flag.id == "7"
    assert flag.enabled is False
    assert flag.rules_logic == RulesLogic.ANY
    assert flag.rules == []


def test_rule_value_is_stored_as_string() -> None:
    """ルールの値は文字列として保持されること。"""
    rule = Rule.from_dict({"id": "r-1", "attribute": "age", "operator": "greater_than", "value": 18})
    assert rule.value == "18"
    assert rule.flag_id is None


def test_flag_to_dict_uses_wire_names() -> None:
    """to_dict は API 上のフィールド名を使うこと。"""
    rule = Rule(id="r-1", attribute="plan", operator=RuleOperator.EQUALS, value="pro", flag_id="f-1")
    data = Flag(id="f-1", name="beta", enabled=True, rules=[rule]).to_dict()
    assert data["rulesLogic"] == "ANY"
    assert data["rules"][0]["flagId"] == "f-1"
    assert data["rules"][0]["operator"] == "equals"
    assert Flag.from_dict(data) == Flag(id="f-1", name="beta", enabled=True, rules=[rule])
