"""Client identification (User-Agent) resolution."""

from .surface import PlatformSurface
from .user_agent import (
    SDK_SUFFIX,
    PlatformUserAgentResolver,
    StaticUserAgentResolver,
    UserAgentCell,
    UserAgentResolver,
    format_user_agent,
)

__all__ = [
    "SDK_SUFFIX",
    "PlatformSurface",
    "PlatformUserAgentResolver",
    "StaticUserAgentResolver",
    "UserAgentCell",
    "UserAgentResolver",
    "format_user_agent",
]
