"""Credential pool management.

Long-lived GitHub OAuth tokens (credentials) are stored in the database and
exchanged for short-lived Copilot inference tokens. The rotation manager
spreads inference requests over all credentials that are still alive, the
health monitor tracks which credentials were revoked upstream, and the token
cache avoids repeated exchanges while an inference token is still valid.
"""
