# backend/farmstore/routes/auth.py
"""
Authentication API routes

SECURITY FEATURES:
- Password strength validation on registration and change-password
- Short-lived access token in the response body
- Refresh token only in an HTTP-only, SameSite=Strict cookie
- Refresh tokens rotate on every use and are revoked on logout
"""

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..responses import api_error, api_success, json_body
from ..services import auth_service
from ..services.auth_service import AuthError, PasswordValidationError
from ..validation import ConflictError, ValidationError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


def _set_refresh_cookie(response, refresh_token: str):
    config = current_app.config
    response.set_cookie(
        config["REFRESH_COOKIE_NAME"],
        refresh_token,
        max_age=config["JWT_REFRESH_EXPIRES_DAYS"] * 24 * 60 * 60,
        httponly=True,
        secure=config["REFRESH_COOKIE_SECURE"],
        samesite="Strict",
        path="/",
    )
    return response


def _clear_refresh_cookie(response):
    response.delete_cookie(current_app.config["REFRESH_COOKIE_NAME"], path="/", samesite="Strict")
    return response


def _session_response(message: str, user, access_token: str, refresh_token: str, status: int):
    response, status = api_success(
        message,
        {"user": user.to_dict(), "accessToken": access_token},
        status=status,
    )
    return _set_refresh_cookie(response, refresh_token), status


@auth_bp.post("/register")
def register_route():
    """Public self-registration. New accounts are retail buyers."""
    data = json_body()
    try:
        user, access_token, refresh_token = auth_service.register(data)
    except ValidationError as e:
        return api_error(str(e), errors=e.errors, status=400)
    except PasswordValidationError as e:
        return api_error(str(e), errors=[{"field": "password", "message": m} for m in e.errors], status=400)
    except ConflictError as e:
        return api_error(str(e), status=409)

    return _session_response("User registered successfully", user, access_token, refresh_token, 201)


@auth_bp.post("/login")
def login_route():
    data = json_body()
    email = data.get("email")
    password = data.get("password")
    if not email or not password:
        return api_error(
            "Email and password are required",
            errors=[
                {"field": f, "message": f"{f} is required"}
                for f, v in (("email", email), ("password", password))
                if not v
            ],
            status=400,
        )

    try:
        user, access_token, refresh_token = auth_service.login(email, password)
    except ValidationError as e:
        return api_error(str(e), errors=e.errors, status=400)
    except AuthError as e:
        return api_error(str(e), status=401)

    return _session_response("Login successful", user, access_token, refresh_token, 200)


@auth_bp.post("/refresh")
def refresh_route():
    """Read the refresh cookie (or body, for non-browser clients) and rotate it."""
    data = json_body()
    token = request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"]) or data.get("refreshToken")
    if not token:
        return api_error("Refresh token not provided", status=401)

    try:
        _, access_token, refresh_token = auth_service.refresh(token)
    except AuthError as e:
        response, status = api_error(str(e), status=401)
        return _clear_refresh_cookie(response), status

    response, status = api_success("Token refreshed successfully", {"accessToken": access_token})
    return _set_refresh_cookie(response, refresh_token), status


@auth_bp.post("/logout")
@require_auth
def logout_route():
    auth_service.logout(g.current_user)
    response, status = api_success("Logout successful")
    return _clear_refresh_cookie(response), status


@auth_bp.get("/me")
@require_auth
def me_route():
    return api_success("User profile retrieved successfully", g.current_user.to_dict())


@auth_bp.put("/me")
@require_auth
def update_me_route():
    data = json_body()
    try:
        user = auth_service.update_profile(g.current_user, data)
    except ValidationError as e:
        return api_error(str(e), errors=e.errors, status=400)
    return api_success("Profile updated successfully", user.to_dict())


@auth_bp.put("/change-password")
@require_auth
def change_password_route():
    data = json_body()
    try:
        auth_service.change_password(
            g.current_user,
            data.get("currentPassword"),
            data.get("newPassword"),
        )
    except ValidationError as e:
        return api_error(str(e), errors=e.errors, status=400)
    except PasswordValidationError as e:
        return api_error(str(e), errors=[{"field": "newPassword", "message": m} for m in e.errors], status=400)
    except AuthError as e:
        return api_error(str(e), status=401)
    return api_success("Password changed successfully")
