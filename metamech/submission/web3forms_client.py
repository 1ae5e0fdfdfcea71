"""Web3Forms client -- forwards order, trial and demo requests by email."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from metamech.config.settings import Settings
from metamech.hooks.audit_hooks import log_submission
from metamech.models.enums import FormFlow

from .base import SubmissionClientBase, SubmissionResult, build_payload

logger = logging.getLogger(__name__)


class Web3FormsClient(SubmissionClientBase):
    """Posts form-encoded submissions and reads the JSON ``success`` flag."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        endpoint: Optional[str] = None,
    ):
        self._settings = settings or Settings()
        self._endpoint = endpoint or self._settings.submission_endpoint
        self._client = httpx.AsyncClient(timeout=self._settings.submission_timeout)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def submit(
        self,
        flow: FormFlow,
        fields: dict[str, str],
        plan_id: Optional[str] = None,
    ) -> SubmissionResult:
        payload = build_payload(
            flow, fields, self._settings.submission_access_key, plan_id=plan_id
        )
        try:
            resp = await self._client.post(
                self._endpoint,
                data=payload,
                headers={"Accept": "application/json"},
            )
            result = self._parse_response(resp)
        except Exception as e:
            logger.error(f"Form submission failed for {flow.value}: {e}")
            result = SubmissionResult(success=False, message=str(e))

        log_submission(flow.value, payload["subject"], result.success, result.message)
        return result

    async def aclose(self) -> None:
        await self._client.aclose()

    def _parse_response(self, resp: httpx.Response) -> SubmissionResult:
        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        message = data.get("message")
        if resp.status_code == 200 and data.get("success") is True:
            return SubmissionResult(success=True, message=message)
        return SubmissionResult(
            success=False,
            message=message or f"Form submission failed (HTTP {resp.status_code})",
        )
