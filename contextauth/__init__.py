"""
ContextAuth API - risk-based contextual authentication.

Every login is scored against the user's trust profile:
- Known devices, IP addresses and locations
- Behavioral baseline (typing speed, usual login hours)
- Three-tier decision: allow, require emailed 2FA code, or block and alert
- Time-boxed email verification, 2FA and password reset tokens

Built with FastAPI, SQLAlchemy, and PostgreSQL.
"""

__version__ = "1.0.0"
__author__ = "ContextAuth Team"
__license__ = "MIT"

# Package metadata
__all__ = [
    "__version__",
    "__author__",
    "__license__",
]
