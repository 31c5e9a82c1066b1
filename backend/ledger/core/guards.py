"""
Security guards for role-based and business-scoped access control.

Provides dependencies for protecting ledger endpoints.
"""

from typing import List
from fastapi import Depends, HTTPException, Path, status
from backend.ledger.models.enums import UserRole
from backend.ledger.core.dependencies import get_current_user


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.
    
    Usage:
        @router.post("/businesses/{business_id}/repair/sales")
        async def repair_sales(current_user: dict = Depends(require_role([UserRole.OWNER]))):
            ...
    
    Args:
        allowed_roles: List of UserRole enums that are allowed to access the endpoint
        
    Returns:
        FastAPI dependency function that validates user role
        
    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        # Convert string role to UserRole enum
        try:
            user_role = UserRole(current_user.get("role"))
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role in token"
            )
        
        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )
        
        return current_user
    
    return role_checker


def require_business_access(allowed_roles: List[UserRole] = None):
    """
    Dependency factory: role check plus the token's business must match
    the {business_id} path parameter.
    
    Args:
        allowed_roles: Roles allowed; defaults to every role
    """
    role_dependency = require_role(allowed_roles or list(UserRole))
    
    async def business_checker(
        business_id: int = Path(..., description="Business ID"),
        current_user: dict = Depends(role_dependency)
    ) -> dict:
        if int(current_user.get("business_id")) != business_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied. You do not have permission to access this business."
            )
        return current_user
    
    return business_checker
