"""
Divergence Classifier

Decides what three verdicts on the same input mean. Rules are evaluated in
a fixed order and the first match wins:

1. a crashed implementation is suppressed by a known crash rule, or escalated
2. a known asymmetric divergence is suppressed
3. any remaining valid/invalid disagreement is escalated
4. agreement on invalid is uninteresting
5. agreement on valid goes on to the reformat check
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from .rules import CRASH_RULES, DIVERGENCE_RULES, Rule
from .verdict import IMPLEMENTATIONS, Verdicts


class Action(Enum):
    """Classifier decision"""
    SUPPRESS = "suppress"            # known, benign divergence or crash
    CRASH = "crash"                  # unexplained crash, escalate
    DISAGREE = "disagree"            # unexplained disagreement, escalate
    AGREE_INVALID = "agree_invalid"  # nothing more to check
    AGREE_VALID = "agree_valid"      # continue with the reformat check


@dataclass(frozen=True)
class Classification:
    action: Action
    reason: str
    rule: Optional[str] = None
    implementation: Optional[str] = None

    @property
    def escalated(self) -> bool:
        return self.action in (Action.CRASH, Action.DISAGREE)


class DivergenceClassifier:
    """
    Ordered rule engine over (input, verdicts).

    The rule tables are immutable and shared, so one classifier can serve
    any number of concurrent evaluations.
    """

    def __init__(self, crash_rules: Sequence[Rule] = CRASH_RULES,
                 divergence_rules: Sequence[Rule] = DIVERGENCE_RULES):
        self.logger = logging.getLogger("gooracle.classifier")
        self.crash_rules = tuple(crash_rules)
        self.divergence_rules = tuple(divergence_rules)

    def classify(self, data: bytes, verdicts: Verdicts) -> Classification:
        """
        Classify the verdicts of every enabled implementation on ``data``.

        Args:
            data: The candidate input, for rules that look at the source
            verdicts: Reference verdict plus those of the enabled compilers

        Returns:
            Classification naming the decision and the rule that made it
        """
        # 1. Crashes first. Every crashed implementation needs its own known
        # crash rule; one unexplained crash escalates regardless of the others.
        suppressed = None
        for name in IMPLEMENTATIONS:
            verdict = verdicts.get(name)
            if verdict is None or not verdict.crashed:
                continue
            rules = [r for r in self.crash_rules if r.implementation == name]
            rule = self._first_match(rules, data, verdicts)
            if rule is None:
                self.logger.warning(f"{name} crashed ({verdict.signature}) with no matching suppression")
                return Classification(Action.CRASH, f"{name} crashed ({verdict.signature})",
                                      implementation=name)
            if suppressed is None:
                suppressed = Classification(Action.SUPPRESS, f"known {name} crash", rule.name, name)
        if suppressed is not None:
            self.logger.info(f"Suppressed known {suppressed.implementation} crash: {suppressed.rule}")
            return suppressed

        # 2. Known asymmetric divergences
        rule = self._first_match(self.divergence_rules, data, verdicts)
        if rule is not None:
            self.logger.info(f"Suppressed known divergence: {rule.name}")
            return Classification(Action.SUPPRESS, "known divergence", rule.name)

        # 3. Safety net: any other disagreement is a finding
        if not verdicts.agree():
            summary = ", ".join(f"{v.implementation}={v.outcome.value}" for v in verdicts.present())
            self.logger.warning(f"Implementations disagree: {summary}")
            return Classification(Action.DISAGREE, f"implementations disagree: {summary}")

        # 4. / 5.
        if not verdicts.reference.valid:
            return Classification(Action.AGREE_INVALID, "all implementations reject the input")
        return Classification(Action.AGREE_VALID, "all implementations accept the input")

    @staticmethod
    def _first_match(rules: Sequence[Rule], data: bytes, verdicts: Verdicts) -> Optional[Rule]:
        for rule in rules:
            if rule.matches(data, verdicts):
                return rule
        return None
