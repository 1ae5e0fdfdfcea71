"""Audit hooks -- logs form submissions for the audit trail."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)


def log_submission(
    flow: str,
    subject: str,
    success: bool,
    message: Optional[str] = None,
) -> dict[str, Any]:
    """Record a form submission attempt.

    Contact details are not recorded, only the subject line.
    Returns the audit entry dict for downstream persistence.
    """
    entry = {
        "flow": flow,
        "subject": subject,
        "success": success,
        "message": message,
        "timestamp": datetime.now(tz=timezone.utc).isoformat(),
    }
    if success:
        logger.info(f"Submission audit: {flow} → ok")
    else:
        logger.warning(f"Submission audit: {flow} → failed ({message})")
    return entry
