# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Identity derivation from portal usernames."""

SECONDARY_PREFIX = "kst_"


def normalize_domain(domain: str) -> str:
    """Strip whitespace and a leading '@' from an e-mail domain."""
    return domain.strip().lstrip("@")


def student_identity(username: str, domain: str) -> str:
    """Student account e-mail for a portal username.

    A username that already is an e-mail address is used as is.
    """
    username = username.strip()
    if "@" in username:
        return username
    return f"{username}@{normalize_domain(domain)}"


def local_part(identity: str) -> str:
    return identity.split("@", 1)[0]


def secondary_identity(
    username: str,
    domain: str,
    prefix: str = SECONDARY_PREFIX,
) -> str:
    """Secondary account e-mail, e.g. kst_alice@example.org."""
    local = local_part(username.strip())
    return f"{prefix}{local}@{normalize_domain(domain)}"


def is_same_identity(left: str, right: str) -> bool:
    """Case-insensitive comparison of two e-mail identities."""
    return left.strip().casefold() == right.strip().casefold()
