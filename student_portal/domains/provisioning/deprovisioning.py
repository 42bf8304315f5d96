# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Account deprovisioning workflow.

    START -> PRIMARY_GUARD_CHECKED -> EXTERNAL_DELETED -> COUNTER_DECREMENTED -> DONE

A directory NotFound on delete means the account is already gone and is
treated as a confirmed deletion. The counter is decremented exactly once
per confirmed deletion; the store floors the count at zero. A decrement
failure still reports success with a CounterDesyncError attached.
"""

from student_portal.domains.provisioning.exceptions import (
    CounterDesyncError,
    DeprovisioningFatalError,
    DeprovisioningRejectedError,
)
from student_portal.domains.provisioning.identity import is_same_identity
from student_portal.domains.provisioning.models import (
    AccountScope,
    DeprovisioningReason,
    DeprovisioningResult,
    DeprovisioningState,
)
from student_portal.domains.quota import CounterStore, StoreUnavailableError
from student_portal.infrastructure.directory import (
    DirectoryAPIError,
    DirectoryClient,
    DirectoryError,
    DirectoryNotFoundError,
)
from student_portal.utils.logging import get_logger

logger = get_logger(__name__)


class DeprovisioningWorkflow:
    """Delete directory accounts and release their quota slot.

    Attributes:
        _directory: Directory client.
        _store: Registration counter store.
        _scope: PRIMARY for the caller's own account, SECONDARY for
            auxiliary accounts, which must never be the caller's primary.
    """

    def __init__(
        self,
        directory: DirectoryClient,
        store: CounterStore,
        scope: AccountScope = AccountScope.PRIMARY,
    ) -> None:
        self._directory = directory
        self._store = store
        self._scope = scope

    @property
    def scope(self) -> AccountScope:
        return self._scope

    async def deprovision(self, identity: str, caller_primary: str) -> DeprovisioningResult:
        """Delete an account.

        Args:
            identity: Account to delete.
            caller_primary: Primary identity of the caller.

        Returns:
            DeprovisioningResult in state DONE.

        Raises:
            DeprovisioningRejectedError: If a secondary-scoped request targets
                the caller's primary account. Nothing was changed.
            DeprovisioningFatalError: If the directory delete failed. The
                counter was not changed and the request may be retried.
        """
        transitions = [DeprovisioningState.START]
        log = logger.bind(identity=identity, scope=self._scope.value)

        if self._scope is AccountScope.SECONDARY and is_same_identity(identity, caller_primary):
            log.warning("deprovisioning_rejected", reason=DeprovisioningReason.PRIMARY_ACCOUNT_GUARD.value)
            raise DeprovisioningRejectedError(DeprovisioningReason.PRIMARY_ACCOUNT_GUARD, identity)
        transitions.append(DeprovisioningState.PRIMARY_GUARD_CHECKED)

        already_absent = False
        try:
            await self._directory.delete_user(identity)
        except DirectoryNotFoundError:
            already_absent = True
            log.info("directory_account_already_absent")
        except DirectoryAPIError as e:
            log.error("deprovisioning_failed", status_code=e.status_code, error=e.message)
            raise DeprovisioningFatalError(
                DeprovisioningReason.EXTERNAL_DELETE_FAILED, identity, e.message
            ) from e
        except DirectoryError as e:
            log.error("deprovisioning_failed", error=e.message)
            raise DeprovisioningFatalError(
                DeprovisioningReason.DIRECTORY_UNAVAILABLE, identity, e.message
            ) from e
        transitions.append(DeprovisioningState.EXTERNAL_DELETED)

        try:
            decremented = await self._store.decrement()
        except StoreUnavailableError as e:
            log.critical("counter_desync", operation="decrement", error=str(e))
            transitions.append(DeprovisioningState.DONE)
            return DeprovisioningResult(
                identity=identity,
                state=DeprovisioningState.DONE,
                already_absent=already_absent,
                desync=CounterDesyncError(identity, "decrement", e),
                transitions=transitions,
            )

        transitions.extend([DeprovisioningState.COUNTER_DECREMENTED, DeprovisioningState.DONE])
        log.info("deprovisioning_completed", already_absent=already_absent)
        return DeprovisioningResult(
            identity=identity,
            state=DeprovisioningState.DONE,
            already_absent=already_absent,
            counter_decremented=decremented,
            transitions=transitions,
        )
