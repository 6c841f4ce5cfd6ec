"""
Services module untuk ContextAuth API.
Berisi business logic layer yang terpisah dari presentation dan data layers.

Hanya komponen domain tanpa dependency ke models yang di-export di sini;
AuthService, IdentityStore, dan adapter collaborator diimport dari modulnya.
"""

from contextauth.services.context import GeoPoint, LoginContext, capture_context
from contextauth.services.trust_store import BehavioralBaseline, ContextLogEntry, TrustStore
from contextauth.services.risk import RiskAssessment, RiskScorer, SignalHit
from contextauth.services.profile import ProfileUpdater
from contextauth.services.token import IssuedToken, StoredToken, TokenService, TokenValidation
from contextauth.services.policy import DecisionPolicy, LoginOutcome

__all__ = [
    "GeoPoint",
    "LoginContext",
    "capture_context",
    "BehavioralBaseline",
    "ContextLogEntry",
    "TrustStore",
    "RiskAssessment",
    "RiskScorer",
    "SignalHit",
    "ProfileUpdater",
    "IssuedToken",
    "StoredToken",
    "TokenService",
    "TokenValidation",
    "DecisionPolicy",
    "LoginOutcome"
]
