"""
FamilySync: validated writes and notification fan-out
======================================================

Server-side pipeline behind the FamilySync app: every client write is
sanitized, validated and authorized before it reaches Firestore, and
document changes fan out push notifications to the family.

Key Components:
- validators: per-entity field validation and input sanitizing
- functions: callable endpoints and the family-membership guard
- notifiers: document-change triggers sending push notifications
- scheduling: calendar conflict scanner
- notes: family notes board with optimistic local updates
"""

__version__ = "1.0.0"
