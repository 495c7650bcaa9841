# config/jwt.py
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
import os
from typing import Optional, Dict
import logging

logger = logging.getLogger(__name__)

# Load from environment variable or use a default for development
JWT_SECRET = os.getenv('SUPABASE_JWT_SECRET', 'local-development-secret')
JWT_ALGORITHM = "HS256"
JWT_AUDIENCE = "authenticated"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 24 hours

def create_access_token(user_id: str, email: str, expires_delta: Optional[timedelta] = None) -> str:
    """Mint a token shaped like the ones Supabase Auth issues"""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": str(user_id),
        "email": email,
        "aud": JWT_AUDIENCE,
        "role": "authenticated",
        "exp": expire
    }
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)

def decode_token(token: str) -> Optional[Dict]:
    """Decode and verify a JWT token"""
    try:
        return jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE
        )
    except JWTError as e:
        logger.error(f"JWT decode error: {str(e)}")
        return None
