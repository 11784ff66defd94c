# dependencies.py
"""
Shared FastAPI dependencies: bearer-token authentication and role checks.
"""
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

from config import settings


# Token Auth Dependency
def verify_token(request: Request) -> dict:
     auth = request.headers.get("Authorization")
     if not auth or not auth.startswith("Bearer "):
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
     token = auth.split(" ")[1]
     try:
          payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
          return payload
     except JWTError:
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")


def require_admin(token: dict = Depends(verify_token)) -> dict:
     """Allow only tokens carrying role=admin."""
     if token.get("role") != "admin":
          raise HTTPException(
               status_code=status.HTTP_403_FORBIDDEN,
               detail="Admin role required"
          )
     return token
