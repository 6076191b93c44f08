"""Utility functions for metrics handling."""

import constants
import metrics
from credentials.credential_store import CredentialStore
from log import get_logger

logger = get_logger(__name__)


def update_credential_metrics(store: CredentialStore) -> None:
    """Refresh the credential gauge from the store."""
    counts = {
        constants.CREDENTIAL_STATUS_ALIVE: 0,
        constants.CREDENTIAL_STATUS_DEAD: 0,
    }
    for credential in store.list_all():
        counts[credential.status] = counts.get(credential.status, 0) + 1
    logger.debug("Credential counts: %s", counts)
    for status, count in counts.items():
        metrics.credentials_total.labels(status).set(count)
