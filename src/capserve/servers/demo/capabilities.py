"""Demo tools, resources and prompts.

A small, self-contained set of capabilities used by ``capserve serve`` and
as a worked example of registering handlers.
"""

import logging
from typing import Any

from capserve.api.mcp.app import CapabilityServer
from capserve.core.mcp.descriptors import Message, ResourceReference, Role

logger = logging.getLogger(__name__)

PROFILES: dict[str, dict[str, Any]] = {
    "ada": {"name": "Ada Lovelace", "role": "analyst", "languages": ["en", "fr"]},
    "grace": {"name": "Grace Hopper", "role": "engineer", "languages": ["en"]},
}

ADMIN_PROFILE: dict[str, Any] = {
    "name": "Administrator",
    "role": "admin",
    "permissions": ["read", "write", "manage"],
}

APP_CONFIG: dict[str, Any] = {
    "app_name": "capserve-demo",
    "features": ["tools", "resources", "prompts"],
    "max_results": 50,
}


def add(a: int, b: int) -> int:
    """Add two integers.

    Args:
        a: First number
        b: Second number
    """
    return a + b


def divide(a: float, b: float) -> float:
    """Divide one number by another.

    Args:
        a: Dividend
        b: Divisor; must not be zero
    """
    if b == 0:
        raise ZeroDivisionError("division by zero")
    return a / b


def app_config() -> dict[str, Any]:
    """Static application configuration."""
    return dict(APP_CONFIG)


def user_profile(user_id: str) -> dict[str, Any]:
    """Profile of a user by id."""
    try:
        return {"id": user_id, **PROFILES[user_id]}
    except KeyError:
        raise LookupError(f"No profile for user '{user_id}'") from None


def admin_profile() -> dict[str, Any]:
    """Profile of the administrator account."""
    return {"id": "admin", **ADMIN_PROFILE}


def summarize_profile(user_id: str, tone: str = "neutral") -> list[Any]:
    """Summarize a user's profile.

    Args:
        user_id: User whose profile is attached
        tone: Tone of the summary
    """
    return [
        Message(role=Role.SYSTEM, content=f"Write in a {tone} tone."),
        Message(role=Role.USER, content=f"Summarize the profile of {user_id}."),
        ResourceReference(uri=f"user://{user_id}/profile"),
    ]


def compare_profiles(first: str, second: str) -> list[Any]:
    """Compare two user profiles.

    Args:
        first: First user id
        second: Second user id
    """
    return [
        ("user", f"Compare the profiles of {first} and {second}."),
        ResourceReference(uri=f"user://{first}/profile"),
        ResourceReference(uri=f"user://{second}/profile"),
    ]


def register_demo(server: CapabilityServer) -> None:
    """Register the demo capabilities on a server."""
    server.add_tool(add)
    server.add_tool(divide)

    server.add_resource(
        "config://app",
        app_config,
        name="Application config",
        mime_type="application/json",
        content_kind="json",
    )
    server.add_resource(
        "user://{user_id}/profile",
        user_profile,
        name="User profile",
        mime_type="application/json",
        content_kind="json",
    )
    server.add_resource(
        "user://admin/profile",
        admin_profile,
        name="Admin profile",
        mime_type="application/json",
        content_kind="json",
    )

    server.add_prompt(summarize_profile)
    server.add_prompt(compare_profiles)
    logger.debug("Registered demo capabilities")
