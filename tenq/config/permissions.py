"""Permissions granted through the `permissions` claim of the caller's token."""

REGENERATE_PERMISSION = "prompt_tools"

PERMISSIONS = (REGENERATE_PERMISSION,)


def is_valid_permission(value: str) -> bool:
    return value in PERMISSIONS
