"""
Immutable accumulator for named verification checks.

Each add() returns a new ledger; the total is folded only when the
pipeline builds its VerificationResult.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from app.models.verification import CheckStatus, VerificationCheck


@dataclass(frozen=True)
class CheckLedger:
    checks: Tuple[VerificationCheck, ...] = ()
    warnings: Tuple[str, ...] = ()

    def add(
        self,
        name: str,
        status: CheckStatus,
        points: int = 0,
        warning: Optional[str] = None,
    ) -> "CheckLedger":
        check = VerificationCheck(name=name, status=status, points=points)
        warnings = self.warnings + (warning,) if warning else self.warnings
        return CheckLedger(checks=self.checks + (check,), warnings=warnings)

    def warn(self, warning: str) -> "CheckLedger":
        return CheckLedger(checks=self.checks, warnings=self.warnings + (warning,))

    def merge(self, other: "CheckLedger") -> "CheckLedger":
        return CheckLedger(checks=self.checks + other.checks, warnings=self.warnings + other.warnings)

    @property
    def total(self) -> int:
        return sum(check.points for check in self.checks)

    def points_for(self, name: str) -> int:
        return sum(check.points for check in self.checks if check.name == name)
