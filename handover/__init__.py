"""
Handover - pre-management data preservation toolchain.

Prepares a Windows workstation for hand-over to a managed-service provider:
- Category-based replication of user files to a removable backup target
- Recovery of deleted files from Volume Shadow Copy snapshots
- Browser artifact backup and history export
- Read-only disk-health diagnostics
"""

__version__ = "0.1.0"
__author__ = "Handover Contributors"
