# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admission-gated account provisioning workflow.

The workflow creates one account in the external directory and records it
in the registration counter:

    START -> ELIGIBILITY_CHECKED -> DUPLICATE_CHECKED -> QUOTA_CHECKED
          -> EXTERNAL_CREATED -> COUNTER_COMMITTED -> DONE

Any step before EXTERNAL_CREATED may end the attempt in REJECTED, raised as
ProvisioningRejectedError with a reason code; nothing has been changed at
that point. Once the directory account exists it is never rolled back: if
the counter increment then fails, the attempt ends in PARTIAL_FAILURE and
the caller still receives the account, with a CounterDesyncError logged at
critical severity and attached to the result.

The quota check is made right before the create call and is not a
reservation. Concurrent attempts near the limit may both pass the gate, so
the count can end slightly above the limit; it never drifts below the
number of live accounts.

Example:
    >>> workflow = ProvisioningWorkflow(directory, store, required_trust_level=3)
    >>> result = await workflow.provision(attempt)
    >>> result.state
    <ProvisioningState.DONE: 'done'>
"""

from student_portal.domains.provisioning.exceptions import (
    CounterDesyncError,
    ProvisioningRejectedError,
)
from student_portal.domains.provisioning.models import (
    ProvisioningAttempt,
    ProvisioningResult,
    ProvisioningState,
    RejectionReason,
)
from student_portal.domains.quota import CounterStore, DenialReason, StoreUnavailableError, evaluate
from student_portal.infrastructure.directory import (
    DirectoryClient,
    DirectoryConflictError,
    DirectoryError,
)
from student_portal.utils.logging import get_logger

logger = get_logger(__name__)

_DENIAL_TO_REJECTION = {
    DenialReason.QUOTA_EXCEEDED: RejectionReason.QUOTA_EXCEEDED,
    DenialReason.STORE_UNAVAILABLE: RejectionReason.STORE_UNAVAILABLE,
}


class ProvisioningWorkflow:
    """Provision directory accounts against the registration quota.

    Attributes:
        _directory: Directory client used for lookup and creation.
        _store: Registration counter store.
        _required_trust_level: Minimum caller trust level, None to skip the check.
    """

    def __init__(
        self,
        directory: DirectoryClient,
        store: CounterStore,
        required_trust_level: int | None = None,
    ) -> None:
        """Initialize the workflow.

        Args:
            directory: Directory client.
            store: Registration counter store.
            required_trust_level: Minimum trust level for eligibility.
        """
        self._directory = directory
        self._store = store
        self._required_trust_level = required_trust_level

    async def provision(self, attempt: ProvisioningAttempt) -> ProvisioningResult:
        """Run the workflow for one attempt.

        Args:
            attempt: The identity, caller trust level and account attributes.

        Returns:
            ProvisioningResult in state DONE or PARTIAL_FAILURE.

        Raises:
            ProvisioningRejectedError: If the attempt was rejected. No account
                was created and the counter is unchanged.
        """
        identity = attempt.identity.strip() if attempt.identity else ""
        transitions = [ProvisioningState.START]
        log = logger.bind(identity=identity)

        def reject(reason: RejectionReason, detail: str | None = None) -> ProvisioningRejectedError:
            log.info(
                "provisioning_rejected",
                reason=reason.value,
                state=transitions[-1].value,
                detail=detail,
            )
            return ProvisioningRejectedError(reason, detail=detail, state=transitions[-1])

        # Eligibility
        if not identity or "@" not in identity:
            raise reject(RejectionReason.INVALID_IDENTITY)
        if (
            self._required_trust_level is not None
            and attempt.trust_level < self._required_trust_level
        ):
            raise reject(
                RejectionReason.INSUFFICIENT_TRUST,
                f"trust level {attempt.trust_level} < {self._required_trust_level}",
            )
        transitions.append(ProvisioningState.ELIGIBILITY_CHECKED)

        # Duplicate check
        try:
            exists = await self._directory.exists(identity)
        except DirectoryError as e:
            raise reject(RejectionReason.DIRECTORY_UNAVAILABLE, e.message) from e
        if exists:
            raise reject(RejectionReason.ALREADY_EXISTS)
        transitions.append(ProvisioningState.DUPLICATE_CHECKED)

        # Quota
        admission = await evaluate(self._store)
        if not admission.admitted:
            raise reject(
                _DENIAL_TO_REJECTION.get(admission.reason, RejectionReason.STORE_UNAVAILABLE)
            )
        transitions.append(ProvisioningState.QUOTA_CHECKED)

        # External create
        try:
            account = await self._directory.create_user(identity, attempt.attributes)
        except DirectoryConflictError as e:
            raise reject(RejectionReason.ALREADY_EXISTS, e.message) from e
        except DirectoryError as e:
            raise reject(RejectionReason.EXTERNAL_CREATE_FAILED, e.message) from e
        transitions.append(ProvisioningState.EXTERNAL_CREATED)
        log.info("directory_account_created")

        credential = attempt.attributes.password if attempt.attributes.password_generated else None

        # Counter commit
        try:
            await self._store.increment()
        except StoreUnavailableError as e:
            desync = CounterDesyncError(identity, "increment", e)
            transitions.append(ProvisioningState.PARTIAL_FAILURE)
            log.critical(
                "counter_desync",
                operation="increment",
                error=str(e),
            )
            return ProvisioningResult(
                identity=identity,
                state=ProvisioningState.PARTIAL_FAILURE,
                account=account,
                generated_credential=credential,
                desync=desync,
                transitions=transitions,
            )

        transitions.extend([ProvisioningState.COUNTER_COMMITTED, ProvisioningState.DONE])
        log.info("provisioning_completed")
        return ProvisioningResult(
            identity=identity,
            state=ProvisioningState.DONE,
            account=account,
            generated_credential=credential,
            transitions=transitions,
        )
