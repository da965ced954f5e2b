from fastapi import Depends, HTTPException, status

from api.middleware.auth import get_current_user

_ALL = ("admin", "manager", "viewer")

PERMISSIONS = {
    "PROJECT_VIEW": _ALL,
    "PROJECT_MANAGE": ("admin",),
    "PHASE_VIEW": _ALL,
    "PHASE_MANAGE": ("admin",),
    "CATEGORY_VIEW": _ALL,
    "CATEGORY_MANAGE": ("admin",),
    "ITEM_VIEW": _ALL,
    "ITEM_MANAGE": ("admin",),
    "VENDOR_VIEW": _ALL,
    "VENDOR_MANAGE": ("admin",),
    "EXPENSE_VIEW": _ALL,
    "EXPENSE_MANAGE": ("admin", "manager"),
    "REPORT_VIEW": _ALL,
    "CHAT_USE": _ALL,
    "COMPANY_VIEW": _ALL,
    "COMPANY_MANAGE": ("admin",),
}


def require_roles(*allowed_roles: str):
    """
    FastAPI dependency factory for role-based access control.

    Usage:
        @router.post("/projects")
        async def create_project(
            current_user: dict = Depends(get_current_user),
            _auth: None = Depends(require_roles("admin")),
        ):
    """
    async def check_role(current_user: dict = Depends(get_current_user)):
        if current_user["role"] not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": {
                        "code": "INSUFFICIENT_PERMISSIONS",
                        "message": (
                            f"Role '{current_user['role']}' cannot perform this action. "
                            f"Required: {allowed_roles}"
                        ),
                    }
                },
            )
        return None

    return check_role


def require_permission(permission: str):
    """Same as require_roles, keyed by a named permission."""
    return require_roles(*PERMISSIONS[permission])
