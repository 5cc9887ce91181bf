# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

import re


# =============================================================================
# Path Utilities
# =============================================================================

_TRAILING_SLASH = re.compile(r"/$")
_LEADING_SLASH = re.compile(r"^/")
_LEADING_DOTDOT = re.compile(r"^\.\.")


def fix_path(path: str) -> str:
    """
    Normalise an asset path taken from a request URL.

    Strips one trailing slash, one leading slash and a leading "..", in
    that order. Only the first occurrence of each is removed.

    Example:
        fix_path("/.projects/abc/")  # ".projects/abc"
        fix_path("/../etc")          # "/etc"
    """
    path = _TRAILING_SLASH.sub("", path, count=1)
    path = _LEADING_SLASH.sub("", path, count=1)
    return _LEADING_DOTDOT.sub("", path, count=1)


def fix_user_asset_path(path: str) -> str:
    """
    Normalise a user asset path.

    User assets may not live under the dot-prefixed owner namespaces
    (".projects/", ".profiles/"), so a leading "." is removed as well.
    """
    fixed = fix_path(path)
    return fixed[1:] if fixed.startswith(".") else fixed
