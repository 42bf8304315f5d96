"""Student Portal Backend.

Admission-gated account provisioning for the student portal: quota-limited
creation and deletion of directory accounts, aliases, and counter
reconciliation.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
