"""Library and argument rules from version manifests."""

from __future__ import annotations

import enum
import platform
import re
import sys
from dataclasses import dataclass


class RuleAction(enum.Enum):
    ALLOW = "allow"
    DISALLOW = "disallow"


@dataclass(frozen=True)
class OsRule:
    name: str | None = None
    version: str | None = None
    arch: str | None = None


@dataclass(frozen=True)
class FeatureRules:
    is_demo_user: bool | None = None
    has_custom_resolution: bool | None = None
    has_quick_plays_support: bool | None = None
    is_quick_play_singleplayer: bool | None = None
    is_quick_play_multiplayer: bool | None = None
    is_quick_play_realms: bool | None = None


@dataclass(frozen=True)
class Rule:
    action: RuleAction
    os: OsRule | None = None
    features: FeatureRules | None = None


def rule_from_dict(data: dict) -> Rule:
    """Build a rule from its manifest form."""
    try:
        action = RuleAction(data["action"])
    except KeyError:
        raise ValueError("rule has no action") from None
    os_data = data.get("os")
    features_data = data.get("features")
    os_rule_value = (
        OsRule(os_data.get("name"), os_data.get("version"), os_data.get("arch"))
        if os_data is not None
        else None
    )
    features = (
        FeatureRules(
            is_demo_user=features_data.get("is_demo_user"),
            has_custom_resolution=features_data.get("has_custom_resolution"),
            has_quick_plays_support=features_data.get("has_quick_plays_support"),
            is_quick_play_singleplayer=features_data.get("is_quick_play_singleplayer"),
            is_quick_play_multiplayer=features_data.get("is_quick_play_multiplayer"),
            is_quick_play_realms=features_data.get("is_quick_play_realms"),
        )
        if features_data is not None
        else None
    )
    return Rule(action, os_rule_value, features)


def _native_os() -> str:
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "osx"
    if sys.platform.startswith("linux"):
        return "linux"
    return "unknown"


def _native_os_arch(java_arch: str) -> str:
    base = _native_os()
    if java_arch in ("aarch64", "arm64"):
        return f"{base}-arm64" if base != "unknown" else base
    if java_arch == "arm" and base == "linux":
        return "linux-arm32"
    return base


def os_rule(os: OsRule, java_arch: str) -> bool:
    """Whether an OS rule matches this machine running the given Java architecture."""
    matched = True
    if os.arch is not None:
        matched &= os.arch not in ("x86", "arm")
    if os.name is not None:
        if "arm" in java_arch or "aarch" in java_arch:
            matched &= os.name in (_native_os(), _native_os_arch(java_arch))
        else:
            matched &= os.name == _native_os_arch(java_arch)
    if os.version is not None:
        try:
            pattern = re.compile(os.version)
        except re.error:
            pass
        else:
            matched &= pattern.search(platform.release()) is not None
    return matched


def parse_rule(rule: Rule, java_arch: str) -> bool:
    """Whether a rule allows its subject on this machine."""
    if rule.os is not None:
        result = os_rule(rule.os, java_arch)
    elif rule.features is not None:
        f = rule.features
        result = (
            not (True if f.is_demo_user is None else f.is_demo_user)
            or bool(f.has_custom_resolution)
            or not (True if f.has_quick_plays_support is None else f.has_quick_plays_support)
            or not (True if f.is_quick_play_multiplayer is None else f.is_quick_play_multiplayer)
            or not (True if f.is_quick_play_realms is None else f.is_quick_play_realms)
            or not (True if f.is_quick_play_singleplayer is None else f.is_quick_play_singleplayer)
        )
    else:
        result = False
    return result if rule.action is RuleAction.ALLOW else not result


_CLASSPATH_SEPARATORS = {"windows": ";"}
_DEFAULT_CLASSPATH_SEPARATOR = ":"


def classpath_separator(java_arch: str) -> str:
    """The classpath separator for this machine."""
    os_family = _native_os_arch(java_arch).split("-", 1)[0]
    return _CLASSPATH_SEPARATORS.get(os_family, _DEFAULT_CLASSPATH_SEPARATOR)