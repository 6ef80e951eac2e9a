"""Service layer exports."""

from .auth_flow import AuthResult, FlowState, SchoologyAuthFlow
from .impersonation import RUN_AS_HEADER, ActingCredential, ImpersonationGate
from .session_binder import Session, SessionBinder, SessionCookie
from .token_cipher import TokenCipherService
from .token_store import OAuthTokenStore

__all__ = [
    "ActingCredential",
    "AuthResult",
    "FlowState",
    "ImpersonationGate",
    "OAuthTokenStore",
    "RUN_AS_HEADER",
    "SchoologyAuthFlow",
    "Session",
    "SessionBinder",
    "SessionCookie",
    "TokenCipherService",
]
