from unittest.mock import patch

import pytest

from theseus.rules import (
    FeatureRules,
    OsRule,
    Rule,
    RuleAction,
    classpath_separator,
    os_rule,
    parse_rule,
    rule_from_dict,
)


def test_rule_from_dict_full():
    rule = rule_from_dict(
        {"action": "disallow", "os": {"name": "osx", "arch": "x86"}, "features": {"is_demo_user": True}}
    )
    assert rule.action is RuleAction.DISALLOW
    assert rule.os == OsRule(name="osx", arch="x86")
    assert rule.features == FeatureRules(is_demo_user=True)


def test_rule_from_dict_errors():
    with pytest.raises(ValueError):
        rule_from_dict({"os": {"name": "linux"}})
    with pytest.raises(ValueError):
        rule_from_dict({"action": "maybe"})


def test_bare_rule_is_false_when_allowed():
    assert parse_rule(Rule(RuleAction.ALLOW), "x86_64") is False
    assert parse_rule(Rule(RuleAction.DISALLOW), "x86_64") is True


@pytest.mark.parametrize(
    "features, expected",
    [
        (FeatureRules(has_custom_resolution=True), True),
        (FeatureRules(is_demo_user=True), False),
        (FeatureRules(is_demo_user=False), True),
        (FeatureRules(is_quick_play_realms=True), False),
        (FeatureRules(), False),
    ],
)
def test_feature_rules(features, expected):
    assert parse_rule(Rule(RuleAction.ALLOW, features=features), "x86_64") is expected
    assert parse_rule(Rule(RuleAction.DISALLOW, features=features), "x86_64") is (not expected)


def test_os_rules_on_linux():
    with patch("sys.platform", "linux"):
        assert os_rule(OsRule(name="linux"), "x86_64")
        assert not os_rule(OsRule(name="windows"), "x86_64")
        assert parse_rule(Rule(RuleAction.DISALLOW, os=OsRule(name="osx")), "x86_64")
        assert not os_rule(OsRule(arch="x86"), "x86_64")


def test_arm_mac_accepts_both_names():
    with patch("sys.platform", "darwin"):
        assert os_rule(OsRule(name="osx-arm64"), "aarch64")
        assert os_rule(OsRule(name="osx"), "aarch64")
        assert not os_rule(OsRule(name="osx-arm64"), "x86_64")


def test_os_version_regex():
    with patch("sys.platform", "win32"), patch("platform.release", return_value="10"):
        assert os_rule(OsRule(name="windows", version="^10\\."), "x86_64") is False
        assert os_rule(OsRule(name="windows", version="^10"), "x86_64") is True


def test_classpath_separator():
    with patch("sys.platform", "win32"):
        assert classpath_separator("x86_64") == ";"
    with patch("sys.platform", "linux"):
        assert classpath_separator("x86_64") == ":"