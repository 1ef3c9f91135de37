"""Project configuration from .qrefine.yml.

Example::

    profile: strict
    fail_on: warning
    rules:
      - id: functions-in-where
        enabled: false
      - id: select-distinct
        severity: warning
    exclude:
      - "vendor/**"
      - "**/migrations/*.sql"
    extensions:
      ".pgsql": sql
      ".vue": javascript

Command-line flags take precedence over every value here.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from qrefine.exit_codes import ConfigError
from qrefine.rules.base import Rule, Severity
from qrefine.rules.builtin import BUILTIN_RULES, get_builtin_rule, resolve_profile

log = logging.getLogger(__name__)

CONFIG_NAMES = (".qrefine.yml", ".qrefine.yaml")
FAIL_ON_CHOICES = ("error", "warning", "info", "never")
_SEVERITIES = tuple(s.value for s in Severity)


@dataclass
class QRefineConfig:
    path: str | None = None
    profile: str | None = None
    rules: list[dict] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    extensions: dict[str, str] = field(default_factory=dict)
    fail_on: str | None = None


# ---------------------------------------------------------------------------
# YAML config loading
# ---------------------------------------------------------------------------


def find_config_path(config_path: str | None = None, root: Path | None = None) -> str | None:
    """Resolve a config path, searching defaults if not specified."""
    if config_path is not None:
        return config_path
    base = root or Path.cwd()
    for name in CONFIG_NAMES:
        candidate = base / name
        if candidate.exists():
            return str(candidate)
    return None


def _expect(value, kind, key: str, path: str):
    if not isinstance(value, kind):
        raise ConfigError(f"{path}: '{key}' must be a {kind.__name__}, got {type(value).__name__}")
    return value


def _check_override(ov, path: str) -> dict:
    ov = _expect(ov, dict, "rules[]", path)
    rid = ov.get("id")
    if not isinstance(rid, str) or not rid:
        raise ConfigError(f"{path}: every rules entry needs an 'id'")
    if get_builtin_rule(rid) is None:
        raise ConfigError(f"{path}: unknown rule '{rid}'")
    if "severity" in ov and ov["severity"] not in _SEVERITIES:
        raise ConfigError(f"{path}: rule '{rid}' has invalid severity '{ov['severity']}'")
    return ov


def load_config(config_path: str | None = None, root: Path | None = None) -> QRefineConfig:
    """Load and validate the config file.

    Returns an empty config when no file is found. An explicit
    *config_path* that does not exist, malformed YAML, or values of the
    wrong shape raise ``ConfigError``.
    """
    resolved = find_config_path(config_path, root)
    if resolved is None:
        return QRefineConfig()

    try:
        with open(resolved, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"cannot read config {resolved}: {exc.strerror or exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {resolved}: {exc}") from exc

    if data is None:
        return QRefineConfig(path=resolved)
    _expect(data, dict, "top level", resolved)

    cfg = QRefineConfig(path=resolved)
    profile = data.get("profile")
    if profile is not None:
        cfg.profile = str(_expect(profile, str, "profile", resolved)).strip() or None
    cfg.rules = [_check_override(ov, resolved) for ov in _expect(data.get("rules") or [], list, "rules", resolved)]
    cfg.exclude = [str(p) for p in _expect(data.get("exclude") or [], list, "exclude", resolved)]

    extensions = _expect(data.get("extensions") or {}, dict, "extensions", resolved)
    for ext, lang in extensions.items():
        ext = str(ext).lower()
        cfg.extensions[ext if ext.startswith(".") else "." + ext] = str(lang)

    fail_on = data.get("fail_on")
    if fail_on is not None:
        if fail_on not in FAIL_ON_CHOICES:
            raise ConfigError(f"{resolved}: fail_on must be one of {', '.join(FAIL_ON_CHOICES)}")
        cfg.fail_on = fail_on

    log.debug("loaded config %s", resolved)
    return cfg


# ---------------------------------------------------------------------------
# Rule resolution
# ---------------------------------------------------------------------------


def merge_overrides(profile_name: str | None, user_overrides: list[dict]) -> list[dict]:
    """Profile overrides are the base; user overrides layer on top."""
    if not profile_name:
        return list(user_overrides)
    try:
        profile_overrides = resolve_profile(profile_name)
    except ValueError as e:
        raise ConfigError(str(e)) from e

    merged = {ov["id"]: dict(ov) for ov in profile_overrides}
    for ov in user_overrides:
        rule = get_builtin_rule(ov["id"])
        rid = rule.id if rule else ov["id"]
        merged.setdefault(rid, {"id": rid}).update({k: v for k, v in ov.items() if k != "id"})
    return list(merged.values())


def resolve_rules(
    overrides: list[dict] | None = None,
    rule_filter: list[str] | tuple[str, ...] | None = None,
    severity_filter: str | None = None,
) -> list[Rule]:
    """Return the rules to evaluate, in catalog order.

    Applies overrides (enable/disable, severity) to copies of the built-in
    rules. ``rule_filter`` selects rules by ID or code and runs them even if
    they are disabled by default.
    """
    override_map: dict[str, dict] = {}
    for o in overrides or []:
        rule = get_builtin_rule(o.get("id", ""))
        if rule is not None:
            override_map.setdefault(rule.id, {}).update(o)

    resolved = []
    for rule in BUILTIN_RULES:
        r = copy.copy(rule)
        ov = override_map.get(rule.id)
        if ov:
            if "enabled" in ov:
                r.enabled = bool(ov["enabled"])
            if "severity" in ov:
                r.severity = Severity(ov["severity"])
        resolved.append(r)

    if rule_filter:
        wanted = set(rule_filter)
        unknown = [w for w in wanted if get_builtin_rule(w) is None]
        if unknown:
            raise ConfigError("unknown rule(s): {}".format(", ".join(sorted(unknown))))
        resolved = [r for r in resolved if r.id in wanted or r.code in wanted]
        for r in resolved:
            r.enabled = True
    else:
        resolved = [r for r in resolved if r.enabled]

    if severity_filter:
        resolved = [r for r in resolved if r.severity.value == severity_filter]

    return resolved
