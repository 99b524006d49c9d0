from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
import logging
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from clinic.core.config import settings
from clinic.application.policy import Actor, Role
from clinic.exceptions import Forbidden

logger = logging.getLogger(__name__)

oauth2_scheme = HTTPBearer(auto_error=False)

def create_jwt_token(data: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def create_actor_token(actor_id: str, role: Role, expires_minutes: Optional[int] = None) -> str:
    return create_jwt_token({"sub": actor_id, "role": role.value}, expires_minutes)

def decode_jwt_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.InvalidTokenError:
        return None

def get_current_actor(credentials: Optional[HTTPAuthorizationCredentials] = Depends(oauth2_scheme)) -> Actor:
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Authentication required")
    payload = decode_jwt_token(credentials.credentials)
    if not payload:
        logger.warning("JWT token decode failed - invalid or expired token")
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    actor_id = payload.get("sub")
    if not actor_id:
        raise HTTPException(status_code=401, detail="Invalid token: missing user ID")
    try:
        role = Role(payload.get("role"))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token: unknown role")
    return Actor(id=str(actor_id), role=role)

def require_roles(*roles: Role):
    """Route dependency that admits only the given roles."""
    allowed = frozenset(roles)

    def _dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in allowed:
            raise Forbidden("Not authorized to access this resource")
        return actor

    return _dependency
