"""
OAuth2 client utilities for Google, Facebook and GitHub.

The handshake itself is Authlib's job; this module only turns each
provider's answer into a ``ProviderProfile``.
"""

from typing import Any, Dict, List, Optional

import httpx
from authlib.integrations.starlette_client import OAuth, OAuthError
from starlette.config import Config
from starlette.requests import Request

from unison.core.config import settings
from unison.core.errors import ProviderError
from unison.schemas.auth import ProviderProfile

FACEBOOK_GRAPH_URL = "https://graph.facebook.com/v19.0/"

# OAuth configuration
config = Config(environ={})
oauth = OAuth(config)

# Google OAuth2
oauth.register(
    name="google",
    client_id=settings.google_client_id,
    client_secret=settings.google_client_secret,
    client_kwargs={"scope": "openid email profile"},
    server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
)

# Facebook OAuth2
oauth.register(
    name="facebook",
    client_id=settings.facebook_client_id,
    client_secret=settings.facebook_client_secret,
    client_kwargs={"scope": "email public_profile"},
    access_token_url=f"{FACEBOOK_GRAPH_URL}oauth/access_token",
    authorize_url="https://www.facebook.com/v19.0/dialog/oauth",
    api_base_url=FACEBOOK_GRAPH_URL,
)

# GitHub OAuth2
oauth.register(
    name="github",
    client_id=settings.github_client_id,
    client_secret=settings.github_client_secret,
    client_kwargs={"scope": "user:email"},
    access_token_url="https://github.com/login/oauth/access_token",
    authorize_url="https://github.com/login/oauth/authorize",
    api_base_url="https://api.github.com/",
)


def extract_profile_google(user_info: Dict[str, Any]) -> ProviderProfile:
    """Extract a profile from Google's OpenID userinfo."""
    return ProviderProfile(
        provider="google",
        provider_id=str(user_info.get("sub") or ""),
        email=user_info.get("email"),
        display_name=user_info.get("name"),
    )


def extract_profile_facebook(user_info: Dict[str, Any]) -> ProviderProfile:
    """Extract a profile from the Graph API ``/me`` response."""
    return ProviderProfile(
        provider="facebook",
        provider_id=str(user_info.get("id") or ""),
        email=user_info.get("email"),
        display_name=user_info.get("name"),
    )


def extract_profile_github(
    user_info: Dict[str, Any], email_info: Optional[List[Dict[str, Any]]] = None
) -> ProviderProfile:
    """Extract a profile from GitHub, preferring the primary verified email."""
    email = None
    if email_info and isinstance(email_info, list):
        for email_data in email_info:
            if email_data.get("primary") and email_data.get("verified", True):
                email = email_data.get("email")
                break

    user_id = user_info.get("id")
    return ProviderProfile(
        provider="github",
        provider_id=str(user_id) if user_id is not None else "",
        email=email or user_info.get("email"),
        display_name=user_info.get("name") or user_info.get("login"),
    )


async def fetch_provider_profile(provider: str, request: Request) -> ProviderProfile:
    """Complete the callback for ``provider`` and return the verified profile.

    Raises:
        ProviderError: the provider rejected the exchange or returned no id.
    """
    client = oauth.create_client(provider)
    try:
        token = await client.authorize_access_token(request)

        if provider == "google":
            user_info = token.get("userinfo") or await client.userinfo(token=token)
            profile = extract_profile_google(dict(user_info or {}))
        elif provider == "facebook":
            resp = await client.get("me", params={"fields": "id,name,email"}, token=token)
            profile = extract_profile_facebook(resp.json())
        else:
            resp = await client.get("user", token=token)
            email_resp = await client.get("user/emails", token=token)
            profile = extract_profile_github(resp.json(), email_resp.json())
    except (OAuthError, httpx.HTTPError) as e:
        raise ProviderError(f"OAuth2 authentication failed: {e}") from e

    if not profile.provider_id:
        raise ProviderError(f"{provider} did not return an account id")
    return profile
