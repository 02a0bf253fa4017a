"""
SAP user provisioning.

SapService echoes the created user back with a generated SAP identifier.
UserProvisioningService does the same and additionally pushes the user to an
external user API when USER_API_BASE is configured; a failed push is logged
and does not fail the call.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


def generate_sap_id() -> str:
    return str(uuid.uuid4())


def _without_password(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if k != "password"}


class SapService:
    def create_user(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {**_without_password(payload), "sapId": generate_sap_id()}


class UserProvisioningService:
    def __init__(self, base_url: str | None = None, timeout: float = DEFAULT_TIMEOUT, session=None):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.timeout = timeout
        self.http = session or requests.Session()

    def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        user = {**payload, "sapId": generate_sap_id()}
        logger.info("Created user (SAP mode): %s", user["email"])

        if self.base_url:
            body = dict(user)
            if "role" in body:
                body["role"] = getattr(body["role"], "value", body["role"])
            try:
                resp = self.http.post(f"{self.base_url}/users", json=body, timeout=self.timeout)
                resp.raise_for_status()
            except requests.RequestException:
                logger.warning("Failed to sync user to external API: %s", user["email"])
        return _without_password(user)
