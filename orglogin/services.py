"""
Per-request wiring of the login core onto SQL-backed collaborators.

Process-wide state (config, directory cache, verification codes) is built once
at startup and passed in; everything else lives for one unit of work.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from orglogin.directory.identity import SqlClientDirectory, SqlUserDirectory, UserDirectory
from orglogin.directory.selection import LowestIdSelection, SelectionPolicy
from orglogin.directory.store import CachedDirectoryStore, DirectoryCache, SqlDirectoryStore
from orglogin.login.events import EventPublisher, LoggingEventSink
from orglogin.login.login_log import LoginLogSink
from orglogin.login.orchestrator import LoginOrchestrator
from orglogin.login.org_resolver import OrgResolver
from orglogin.login.org_switcher import OrgSwitcher
from orglogin.login.session_binder import SessionBinder
from orglogin.login.variants import (
    CaptchaLogin,
    CodeVerifier,
    LoginVariant,
    MobileLogin,
    PasswordLogin,
    SsoLogin,
    VariantRegistry,
)
from orglogin.security.config import AuthConfig
from orglogin.sessions.store import SqlSessionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginServices:
    orchestrator: LoginOrchestrator
    switcher: OrgSwitcher
    binder: SessionBinder


def build_variants(
    users: UserDirectory,
    config: AuthConfig,
    codes: CodeVerifier,
    sso_secret: str | None = None,
) -> VariantRegistry:
    variants: list[LoginVariant] = [
        PasswordLogin(users),
        CaptchaLogin(users, codes),
        MobileLogin(users, codes),
    ]

    if config.sso is not None and sso_secret:
        variants.append(
            SsoLogin(
                users,
                secret=sso_secret,
                issuer=config.sso.issuer,
                audience=config.sso.audience,
                algorithms=config.sso.algorithms,
                leeway_seconds=config.sso.leeway_seconds,
            )
        )

    registry = VariantRegistry(variants, enabled=config.model.grant_types)
    if config.grant_type_enabled("SSO") and "SSO" not in registry:
        logger.warning("SSO grant type enabled but APP_SSO_SECRET or the sso section is missing; SSO login is off")
    logger.debug("Login grant types: %s", ", ".join(registry.grant_types()))
    return registry


def build_login_services(
    db: Session,
    *,
    config: AuthConfig,
    cache: DirectoryCache,
    codes: CodeVerifier,
    sso_secret: str | None = None,
    selection: SelectionPolicy | None = None,
) -> LoginServices:
    selection = selection or LowestIdSelection()

    users = SqlUserDirectory(db)
    directory = CachedDirectoryStore(SqlDirectoryStore(db), cache)
    events = EventPublisher([LoggingEventSink(), LoginLogSink(db)])

    store = SqlSessionStore(
        db,
        timeout_seconds=config.session.timeout_seconds,
        concurrent=config.session.concurrent,
    )
    binder = SessionBinder(store, default_category=config.session.default_category)

    orchestrator = LoginOrchestrator(
        variants=build_variants(users, config, codes, sso_secret),
        clients=SqlClientDirectory(db),
        directory=directory,
        resolver=OrgResolver(directory, selection),
        binder=binder,
        events=events,
        selection=selection,
        client_prefix=config.headers.client_prefix,
    )
    switcher = OrgSwitcher(
        users=users,
        directory=directory,
        binder=binder,
        events=events,
        selection=selection,
    )
    return LoginServices(orchestrator=orchestrator, switcher=switcher, binder=binder)
