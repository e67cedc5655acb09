"""
TravelFlow

Multitenant backend for travel agencies: tenant-scoped access control,
roles, user invitations and the audit trail of privileged changes.
"""

__version__ = "1.0.0"
