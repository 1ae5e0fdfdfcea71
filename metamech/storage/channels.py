"""Typed wrappers over the key-value stores."""

from __future__ import annotations

import logging
from typing import Optional

from metamech.config.settings import Settings

from .stores import KeyValueStore

logger = logging.getLogger(__name__)

ENQUIRY_SUBJECT_KEY = "metamech_enquiry_subject"
SUBMISSION_ENDPOINT_KEY = "metamech_submission_endpoint"


class PrefillChannel:
    """Passes one enquiry subject from the services section to the contact form.

    The producer writes, the consumer takes. ``take`` clears the value, so a
    subject is delivered at most once.
    """

    def __init__(self, store: KeyValueStore, key: str = ENQUIRY_SUBJECT_KEY):
        self._store = store
        self._key = key

    def write(self, subject: str) -> None:
        self._store.set(self._key, subject)

    def take(self) -> Optional[str]:
        value = self._store.get(self._key)
        if value is not None:
            self._store.clear(self._key)
        return value or None


class AdminConfig:
    """Admin override for the form submission endpoint."""

    def __init__(self, store: KeyValueStore, key: str = SUBMISSION_ENDPOINT_KEY):
        self._store = store
        self._key = key

    def get_submission_endpoint(self) -> Optional[str]:
        value = (self._store.get(self._key) or "").strip()
        return value or None

    def set_submission_endpoint(self, endpoint: str) -> None:
        endpoint = endpoint.strip()
        if endpoint:
            self._store.set(self._key, endpoint)
        else:
            self._store.clear(self._key)


def resolve_submission_endpoint(
    settings: Settings, admin_config: Optional[AdminConfig] = None
) -> str:
    """Endpoint to use for new sessions: admin override first, then settings."""
    if admin_config is not None:
        override = admin_config.get_submission_endpoint()
        if override:
            logger.info("Using admin-configured submission endpoint")
            return override
    return settings.submission_endpoint
