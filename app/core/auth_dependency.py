import logging
from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from app.core.config import SUPABASE_JWT_SECRET, ALGORITHM, SUPABASE_JWT_AUDIENCE
from app.db.session import SessionLocal

logger = logging.getLogger(__name__)

# Tokens are minted by Supabase Auth; tokenUrl is only used for the OpenAPI docs
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/v1/token")


def get_db():
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a Supabase access token.

    Raises:
        JWTError: Invalid token, or no signing secret configured
    """
    if not SUPABASE_JWT_SECRET:
        # An empty HMAC key would accept tokens anyone can sign
        logger.error("SUPABASE_JWT_SECRET is not set; rejecting access token")
        raise JWTError("JWT secret not configured")

    return jwt.decode(
        token,
        SUPABASE_JWT_SECRET,
        algorithms=[ALGORITHM],
        audience=SUPABASE_JWT_AUDIENCE,
    )


def get_current_user(token: str = Depends(oauth2_scheme)) -> str:
    """Get current user id from the Supabase JWT."""
    try:
        payload = decode_access_token(token)
        user_id: str = payload.get("sub")

        if user_id is None:
            raise HTTPException(status_code=401, detail="Invalid token")

        return user_id

    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
