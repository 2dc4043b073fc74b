"""Joins an ingress path prefix with an operator-supplied sub-path."""

from __future__ import annotations


def join_path(prefix: str, suffix: str) -> str:
    """Join prefix and suffix with exactly one '/' at the boundary.

    Interior slashes are left alone and nothing is percent-encoded.

    Examples:
        join_path("/api/", "/v1/users") -> "/api/v1/users"
        join_path("/api", "v1/users")   -> "/api/v1/users"
    """
    prefix_slash = prefix.endswith("/")
    suffix_slash = suffix.startswith("/")

    if prefix_slash and suffix_slash:
        return prefix + suffix[1:]
    if not prefix_slash and not suffix_slash:
        return f"{prefix}/{suffix}"
    return prefix + suffix
