# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependencies.

This module owns the process-wide service singletons created at startup
and exposes them to endpoints through dependency functions. Tests replace
them with app.dependency_overrides.

Example:
    @router.get("/quota")
    async def quota(store: CounterStore = Depends(get_counter_store)):
        ...
"""

import logging
import secrets

import httpx
from fastapi import Depends, Header, Request, status

from student_portal.api.errors import reason_error
from student_portal.api.middleware.portal_session import PortalUser, get_portal_user
from student_portal.core.config import Settings, get_settings
from student_portal.domains.accounts import AccountService
from student_portal.domains.aliases import AliasService
from student_portal.domains.provisioning import (
    AccountScope,
    DeprovisioningWorkflow,
    ProvisioningWorkflow,
)
from student_portal.domains.quota import CounterStore, StoreUnavailableError
from student_portal.domains.reconciliation import CounterReconciliationService
from student_portal.infrastructure.background import ReconciliationScheduler
from student_portal.infrastructure.database import (
    DatabaseError,
    close_database,
    create_schema,
    get_engine,
    get_sessionmaker,
    init_database,
)
from student_portal.infrastructure.directory import DirectoryClient, RefreshTokenProvider

logger = logging.getLogger(__name__)


class PortalServices:
    """Service graph built once per process.

    Attributes:
        http_client: Shared HTTP client for the token endpoint and directory.
        directory: Directory client.
        store: Registration counter store.
        accounts: Account service.
        aliases: Alias service.
        reconciliation: Counter reconciliation service.
        scheduler: Reconciliation scheduler, when enabled.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        store: CounterStore,
    ) -> None:
        directory_settings = settings.directory
        registration = settings.registration

        self.http_client = http_client
        self.store = store
        self.directory = DirectoryClient(
            http_client=http_client,
            token_provider=RefreshTokenProvider(
                http_client=http_client,
                client_id=directory_settings.client_id,
                client_secret=directory_settings.client_secret.get_secret_value(),
                refresh_token=directory_settings.refresh_token.get_secret_value(),
                token_url=directory_settings.token_url,
                timeout=directory_settings.timeout,
                expiry_margin=directory_settings.token_expiry_margin,
            ),
            base_url=directory_settings.api_base_url,
            timeout=directory_settings.timeout,
        )
        self.accounts = AccountService(
            directory=self.directory,
            provisioning=ProvisioningWorkflow(
                self.directory,
                store,
                required_trust_level=registration.min_trust_level,
            ),
            primary_deprovisioning=DeprovisioningWorkflow(
                self.directory, store, scope=AccountScope.PRIMARY
            ),
            secondary_deprovisioning=DeprovisioningWorkflow(
                self.directory, store, scope=AccountScope.SECONDARY
            ),
            domain=registration.domain,
            secondary_prefix=registration.secondary_prefix,
        )
        self.aliases = AliasService(self.directory, registration.domain)
        self.reconciliation = CounterReconciliationService(
            self.directory,
            store,
            domain=registration.domain,
            excluded=settings.reconciliation.excluded_list,
            auto_correct=settings.reconciliation.auto_correct,
        )
        self.scheduler: ReconciliationScheduler | None = None
        if settings.reconciliation.enabled:
            self.scheduler = ReconciliationScheduler(
                self.reconciliation,
                interval_minutes=settings.reconciliation.interval_minutes,
            )


_services: PortalServices | None = None


async def init_services(settings: Settings) -> PortalServices:
    """Create the database pool, HTTP client and services.

    The counter row is initialized here. If the database is unreachable the
    portal still starts; the quota gate then denies every admission until
    the store answers.
    """
    global _services

    await init_database(settings)
    store = CounterStore(
        get_sessionmaker(),
        timeout=settings.database.operation_timeout,
    )

    try:
        if settings.database.create_schema:
            await create_schema(get_engine())
        await store.initialize(settings.registration.limit)
    except (DatabaseError, StoreUnavailableError) as e:
        logger.warning("Registration counter not initialized: %s", str(e))

    http_client = httpx.AsyncClient(timeout=settings.directory.timeout)
    _services = PortalServices(settings, http_client, store)

    if _services.scheduler is not None:
        await _services.scheduler.start()

    return _services


async def close_services() -> None:
    """Stop the scheduler and release connections."""
    global _services

    if _services is not None:
        if _services.scheduler is not None:
            await _services.scheduler.stop()
        await _services.http_client.aclose()
        _services = None

    await close_database()


def get_optional_services() -> PortalServices | None:
    """Get the service graph, None before startup."""
    return _services


def get_services() -> PortalServices:
    """Get the service graph.

    Raises:
        HTTPException: If the services are not initialized.
    """
    if _services is None:
        raise reason_error(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "service_unavailable",
            "Portal services are not initialized",
        )
    return _services


def get_counter_store(services: PortalServices = Depends(get_services)) -> CounterStore:
    return services.store


def get_account_service(services: PortalServices = Depends(get_services)) -> AccountService:
    return services.accounts


def get_alias_service(services: PortalServices = Depends(get_services)) -> AliasService:
    return services.aliases


def get_reconciliation_service(
    services: PortalServices = Depends(get_services),
) -> CounterReconciliationService:
    return services.reconciliation


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_portal_user(request: Request) -> PortalUser:
    """Require a logged-in portal user.

    Raises:
        HTTPException: 401 if there is no portal session.
    """
    user = get_portal_user(request)
    if user is None:
        raise reason_error(status.HTTP_401_UNAUTHORIZED, "not_logged_in", "Not logged in")
    return user


def require_trusted_user(
    user: PortalUser = Depends(require_portal_user),
    settings: Settings = Depends(get_settings),
) -> PortalUser:
    """Require a portal user with the minimum trust level.

    Raises:
        HTTPException: 403 if the trust level is too low.
    """
    if not user.is_trusted(settings.registration.min_trust_level):
        raise reason_error(status.HTTP_403_FORBIDDEN, "insufficient_trust", "Trust level too low")
    return user


def require_admin_key(
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    settings: Settings = Depends(get_settings),
) -> None:
    """Require the admin API key.

    Raises:
        HTTPException: 503 if no key is configured, 401 if the key is wrong.
    """
    configured = settings.admin.api_key
    if configured is None or not configured.get_secret_value():
        logger.error("Admin request rejected: ADMIN_API_KEY is not configured")
        raise reason_error(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "admin_not_configured",
            "Admin API is not configured",
        )
    if not x_api_key or not secrets.compare_digest(
        x_api_key.encode(), configured.get_secret_value().encode()
    ):
        logger.warning("Admin request rejected: invalid API key")
        raise reason_error(status.HTTP_401_UNAUTHORIZED, "invalid_api_key", "Invalid API key")
