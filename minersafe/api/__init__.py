"""
HTTP API Package.

Server-side routes.  Only the privileged sign-up endpoint lives here.
"""

from minersafe.api.signup_endpoint import SIGNUP_ROUTE, create_app, create_signup_blueprint

__all__ = ["SIGNUP_ROUTE", "create_app", "create_signup_blueprint"]
