"""
Authentication dependencies for FastAPI.

Tokens are issued by the external auth service; this module only
verifies them and exposes the claims the ledger needs.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from backend.ledger.core.jwt import decode_access_token

# HTTP Bearer security scheme
security = HTTPBearer()

REQUIRED_CLAIMS = ("user_id", "role", "business_id")


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> dict:
    """
    FastAPI dependency for JWT authentication.
    
    Checks:
    1. Validates JWT token signature and expiry
    2. Requires user_id, role and business_id claims
    
    Args:
        credentials: HTTP Bearer token from request header
        
    Returns:
        Decoded token payload containing user information
        
    Raises:
        HTTPException: 401 if authentication fails for any reason
    """
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    missing = [claim for claim in REQUIRED_CLAIMS if payload.get(claim) is None]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token payload: missing {', '.join(missing)}",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    return payload
