"""Rule evaluation with a per-rule result boundary.

Every rule runs in isolation: an exception inside one rule becomes a
``RuleFailure`` in the result and the remaining rules still run. The
suggestion list is always in catalog order, each rule's suggestions sorted
by source position, whether rules ran sequentially or on a thread pool.
"""

from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass, field

from qrefine.rules.base import Rule, Suggestion
from qrefine.rules.builtin import default_rules
from qrefine.sql.positions import PositionMapper
from qrefine.sql.tokenizer import Token, tokenize

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleFailure:
    rule_id: str
    error: str

    def to_dict(self) -> dict:
        return {"rule": self.rule_id, "error": self.error}


@dataclass(frozen=True)
class RuleOutcome:
    """Result of one rule invocation: suggestions or a failure, never both."""

    rule_id: str
    suggestions: tuple[Suggestion, ...] = ()
    failure: RuleFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass
class EvaluationResult:
    suggestions: list[Suggestion] = field(default_factory=list)
    failures: list[RuleFailure] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failures)

    def extend(self, other: EvaluationResult) -> None:
        self.suggestions.extend(other.suggestions)
        self.failures.extend(other.failures)


def _position_key(s: Suggestion):
    return (s.range.start, s.range.end)


def run_rule(rule: Rule, text: str, tokens: list[Token], mapper: PositionMapper) -> RuleOutcome:
    """Invoke *rule* inside the result boundary."""
    try:
        found = rule.apply(text, tokens, mapper)
    except Exception as exc:
        log.warning("rule %s failed: %s", rule.id, exc)
        log.debug("rule %s traceback", rule.id, exc_info=True)
        return RuleOutcome(rule_id=rule.id, failure=RuleFailure(rule.id, f"{type(exc).__name__}: {exc}"))
    return RuleOutcome(rule_id=rule.id, suggestions=tuple(sorted(found, key=_position_key)))


def evaluate(
    text: str,
    tokens: list[Token] | None = None,
    rules: list[Rule] | None = None,
    max_workers: int = 0,
) -> EvaluationResult:
    """Run every enabled rule over *text* and collect the outcomes.

    Args:
        text: The SQL text the tokens were produced from.
        tokens: Token stream for *text*; tokenized here when omitted.
        rules: Rules to run, in order. Defaults to the enabled built-in rules.
        max_workers: When greater than 1, rules run on a thread pool of
            that size. The result is identical to the sequential run.
    """
    if tokens is None:
        tokens = tokenize(text)
    if rules is None:
        rules = default_rules()
    rules = [r for r in rules if r.enabled]
    mapper = PositionMapper(text)

    if max_workers > 1 and len(rules) > 1:
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(run_rule, rule, text, tokens, mapper) for rule in rules]
            outcomes = [f.result() for f in futures]
    else:
        outcomes = [run_rule(rule, text, tokens, mapper) for rule in rules]

    result = EvaluationResult()
    for outcome in outcomes:
        if outcome.ok:
            result.suggestions.extend(outcome.suggestions)
        else:
            result.failures.append(outcome.failure)
    log.debug("evaluated %d rules: %d suggestions, %d failures", len(rules), len(result.suggestions), len(result.failures))
    return result


def evaluate_rules(text: str, tokens: list[Token] | None = None, rules: list[Rule] | None = None) -> list[Suggestion]:
    """Suggestions only; rule failures are logged and dropped."""
    return evaluate(text, tokens, rules).suggestions
