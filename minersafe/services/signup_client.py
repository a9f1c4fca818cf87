"""
Sign-up Endpoint Client.

Client-side half of the privileged account-creation step.  Posts the
sign-up request to the server endpoint, which holds the service-role key,
and turns the reply into a ``ProvisioningResponse``.  The client never
sees elevated credentials.
"""

from __future__ import annotations

from typing import Optional

import requests

from minersafe.logger import StructuredLogger
from minersafe.models.auth_models import ProvisioningRequest, ProvisioningResponse
from minersafe.services.base_service import BaseService

UNEXPECTED_RESPONSE: str = "Unexpected response"


class SignupEndpointClient(BaseService):
    """POSTs ``ProvisioningRequest`` bodies to ``/api/auth/sign-up``.

    Transport errors (``requests.RequestException``) propagate to the
    caller.

    Parameters
    ----------
    endpoint_url:
        Absolute URL of the sign-up endpoint.
    logger:
        Structured logger.
    session:
        Optional ``requests.Session`` (connection reuse, test doubles).
    """

    def __init__(
        self,
        endpoint_url: str,
        logger: StructuredLogger,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(logger)
        self._endpoint_url: str = endpoint_url
        self._http: requests.Session = session or requests.Session()

    def create_account(self, request: ProvisioningRequest) -> ProvisioningResponse:
        """Ask the server to create the account described by *request*."""
        resp = self._http.post(
            self._endpoint_url,
            json=request.model_dump(mode="json"),
            headers={"Content-Type": "application/json"},
        )

        try:
            body = resp.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {"ok": False, "error": UNEXPECTED_RESPONSE}

        error = body.get("error")
        response = ProvisioningResponse(
            status_code=resp.status_code,
            ok=bool(body.get("ok")),
            error=str(error) if error is not None else None,
        )
        self._logger.debug(
            "Sign-up endpoint replied %d (ok=%s)", response.status_code, response.ok,
        )
        return response
