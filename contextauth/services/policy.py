"""
Decision policy untuk ContextAuth API.
Memetakan risk score ke ALLOWED, TWO_FACTOR_PENDING, atau BLOCKED.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from contextauth.core.config import Settings, settings as default_settings
from contextauth.core.constants import LoginDecision
from contextauth.services.risk import RiskAssessment

if TYPE_CHECKING:
    from contextauth.models.user import User


@dataclass(frozen=True)
class PolicyThresholds:
    """Batas score untuk 2FA dan block."""
    mfa: int = 5
    block: int = 10

    def __post_init__(self) -> None:
        if self.mfa < 0 or self.block < 0:
            raise ValueError("Thresholds must be non-negative")
        if self.mfa >= self.block:
            raise ValueError("MFA threshold must be less than block threshold")

    @classmethod
    def from_settings(cls, config: Settings) -> "PolicyThresholds":
        return cls(mfa=config.MFA_THRESHOLD, block=config.BLOCK_THRESHOLD)


@dataclass(frozen=True)
class LoginOutcome:
    """
    Hasil akhir satu login attempt.

    Attributes:
        decision: Keputusan policy
        assessment: Sinyal dan score yang menghasilkan keputusan
        user: Record user setelah update
        new_device: Apakah device belum dikenal saat attempt
    """
    decision: LoginDecision
    assessment: RiskAssessment
    user: "User"
    new_device: bool = False

    @property
    def score(self) -> int:
        return self.assessment.score

    @property
    def requires_two_factor(self) -> bool:
        return self.decision == LoginDecision.TWO_FACTOR_PENDING


class DecisionPolicy:
    """
    Three-tier decision policy.

    Example:
        policy = DecisionPolicy.from_settings(settings)
        policy.decide(7)  # LoginDecision.TWO_FACTOR_PENDING
    """

    def __init__(self, thresholds: Optional[PolicyThresholds] = None):
        self.thresholds = thresholds or PolicyThresholds()

    @classmethod
    def from_settings(cls, config: Settings = default_settings) -> "DecisionPolicy":
        return cls(PolicyThresholds.from_settings(config))

    def decide(self, score: int) -> LoginDecision:
        """
        Tentukan keputusan dari score.

        Args:
            score: Risk score

        Returns:
            LoginDecision
        """
        if score >= self.thresholds.block:
            return LoginDecision.BLOCKED
        if score >= self.thresholds.mfa:
            return LoginDecision.TWO_FACTOR_PENDING
        return LoginDecision.ALLOWED

    def updates_profile(self, decision: LoginDecision) -> bool:
        """Context di-fold ke trust store kecuali login diblokir."""
        return decision != LoginDecision.BLOCKED
