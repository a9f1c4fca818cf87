"""
Sign-up API Route.

``POST /api/auth/sign-up``: the server-side half of the sign-up flow.
Accepts ``{email, password, full_name, role, rfid}`` and replies with
the ``AccountProvisioningService`` result as ``{ok, error}`` JSON.

The service is injected into the blueprint factory; the blueprint holds
no global state.
"""

from __future__ import annotations

from typing import Any, Optional

from flask import Blueprint, Flask, jsonify, request
from pydantic import ValidationError

from minersafe.logger import StructuredLogger
from minersafe.models.auth_models import ProvisioningRequest, ProvisioningResponse
from minersafe.services.account_provisioning import AccountProvisioningService

SIGNUP_ROUTE: str = "/api/auth/sign-up"


def _parse_request(payload: Any) -> ProvisioningRequest:
    """Build a request from the JSON body; non-objects count as empty."""
    if not isinstance(payload, dict):
        payload = {}
    fields = {
        key: payload.get(key)
        for key in ("email", "password", "full_name", "role", "rfid")
        if payload.get(key) is not None
    }
    return ProvisioningRequest(**fields)


def create_signup_blueprint(
    service: AccountProvisioningService,
    logger: StructuredLogger,
) -> Blueprint:
    """Return a blueprint exposing *service* at ``SIGNUP_ROUTE``."""
    signup_bp = Blueprint("signup", __name__)

    @signup_bp.route(SIGNUP_ROUTE, methods=["POST"])
    def sign_up():
        """Create a confirmed account with the service-role key."""
        try:
            provisioning_request = _parse_request(request.get_json(silent=True))
        except ValidationError as exc:
            logger.warning("Rejected malformed sign-up body: %s", exc.errors()[0]["msg"])
            result = ProvisioningResponse(
                status_code=400, error="Invalid sign-up request.",
            )
        else:
            result = service.create_account(provisioning_request)

        return jsonify(result.body()), result.status_code

    return signup_bp


def create_app(
    service: AccountProvisioningService,
    logger: StructuredLogger,
    config: Optional[dict[str, Any]] = None,
) -> Flask:
    """Create the Flask application hosting the sign-up endpoint.

    Args:
        service: Provisioning service bound to the service-role client.
        logger: Structured logger.
        config: Optional Flask config overrides (e.g. ``{"TESTING": True}``).
    """
    app = Flask(__name__)
    if config:
        app.config.update(config)
    app.register_blueprint(create_signup_blueprint(service, logger))
    return app
