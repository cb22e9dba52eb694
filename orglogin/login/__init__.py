"""
Login core: orchestrator, org resolution, session binding and org switching.

Nothing in this package depends on FastAPI; the routers adapt HTTP to it.
"""

from .context import CallerContext, OnlineToken, ResolvedContext, SessionAttributes, SessionToken
from .errors import LoginError, LoginErrorCode
from .events import EventPublisher, LoginEvent, LoginEventKind
from .orchestrator import LoginOrchestrator
from .org_resolver import OrgResolver, resolve_top_company_id
from .org_switcher import OrgSwitcher
from .session_binder import SessionBinder

__all__ = [
    "CallerContext",
    "EventPublisher",
    "LoginError",
    "LoginErrorCode",
    "LoginEvent",
    "LoginEventKind",
    "LoginOrchestrator",
    "OnlineToken",
    "OrgResolver",
    "OrgSwitcher",
    "ResolvedContext",
    "SessionAttributes",
    "SessionBinder",
    "SessionToken",
    "resolve_top_company_id",
]
