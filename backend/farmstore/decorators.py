# Overview: Request authentication and role decorators for API routes.

from functools import wraps

from flask import current_app, g, request

from .extensions import db
from .models import User
from .models.auth import ADMIN_ROLES
from .responses import api_error
from .services import token_service
from .services.token_service import TokenError


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def _load_user(token: str) -> User | None:
    """
    Resolve an access token to an active user.

    SECURITY: the user row is re-read on every request, so role and
    classification changes (and deactivation) apply before the token expires.
    """
    claims = token_service.decode_access_token(token)
    user = db.session.get(User, claims["userId"])
    if not user or not user.is_active:
        return None
    return user


def require_auth(f):
    """
    Require a valid bearer access token.

    Sets g.current_user to the authenticated User.

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired or refresh-type token
    - User missing or deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return api_error("Authentication required", status=401)

        try:
            user = _load_user(token)
        except TokenError as e:
            return api_error(str(e), status=401)
        if not user:
            return api_error("User not found or inactive", status=401)

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def optional_auth(f):
    """Attach g.current_user when a valid token is sent; anonymous otherwise."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.current_user = None
        token = _bearer_token()
        if token:
            try:
                g.current_user = _load_user(token)
            except TokenError:
                g.current_user = None
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require g.current_user.role to be one of `roles`. Use after @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = getattr(g, "current_user", None)
            if user is None:
                return api_error("Authentication required", status=401)

            if user.role not in roles:
                current_app.logger.warning(
                    "Denied %s %s for user_id=%s role=%s", request.method, request.path, user.id, user.role
                )
                return api_error("Insufficient permissions", status=403)

            return f(*args, **kwargs)

        return decorated_function

    return decorator


def require_admin(f):
    """Admin or super admin. Use after @require_auth."""
    return require_role(*ADMIN_ROLES)(f)
