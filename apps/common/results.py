"""
Result objects returned by loyalty mutations.

A result means the primary operation committed. Best-effort follow-ups
(ledger side record, tier check) are listed in ``side_effects`` so callers
can tell "rejected" (an exception) apart from "succeeded with side issues".
"""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class SideEffectOutcome:
    name: str
    succeeded: bool
    error: Optional[str] = None
    detail: Optional[dict] = None

    def to_dict(self):
        return {
            'name': self.name,
            'succeeded': self.succeeded,
            'error': self.error,
            'detail': self.detail,
        }


@dataclass
class OperationResult:
    side_effects: List[SideEffectOutcome] = field(default_factory=list, kw_only=True)

    @property
    def has_side_issues(self):
        return any(not outcome.succeeded for outcome in self.side_effects)

    def record(self, name, succeeded=True, error=None, detail=None):
        outcome = SideEffectOutcome(name=name, succeeded=succeeded, error=error, detail=detail)
        self.side_effects.append(outcome)
        return outcome
