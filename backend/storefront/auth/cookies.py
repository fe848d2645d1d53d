from fastapi import Response

from storefront.config import Settings, settings as default_settings


def set_session_cookie(response: Response, token: str, settings: Settings = default_settings):
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def clear_session_cookie(response: Response, settings: Settings = default_settings):
    response.delete_cookie(
        settings.SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
