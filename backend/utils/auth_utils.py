import json
import time
import logging
from typing import Any, Dict, List
import urllib.request

from fastapi import Depends, HTTPException, status, Request
from jose import jwt
from jose.exceptions import JWTError

from access_rule import Principal

# === Cognito Configuration ===
# You can find these in your AWS Cognito User Pool settings.
import os
from dotenv import load_dotenv

load_dotenv()

COGNITO_REGION = os.getenv("COGNITO_REGION", "sa-east-1")
COGNITO_USER_POOL_ID = os.getenv("COGNITO_USER_POOL_ID")
COGNITO_APP_CLIENT_ID = os.getenv("COGNITO_APP_CLIENT_ID")

# Members of this Cognito group hold the global admin capability
ADMIN_GROUP = os.getenv("ADMIN_GROUP", "admin")

# --- Advanced Configuration ---
# These are constructed from the settings above.
COGNITO_ISSUER = f"https://cognito-idp.{COGNITO_REGION}.amazonaws.com/{COGNITO_USER_POOL_ID}"
COGNITO_JWKS_URL = f"{COGNITO_ISSUER}/.well-known/jwks.json"

# =================================================================

logger = logging.getLogger(__name__)

# Cache for Cognito's public keys (JWKS)
# This avoids fetching the keys on every single request.
jwks_cache = {
    "keys": [],
    "expiration_time": 0,
}


def get_jwks():
    """
    Retrieves the JSON Web Key Set (JWKS) from Cognito.
    Caches the keys for 24 hours.
    """
    global jwks_cache
    if jwks_cache["keys"] and jwks_cache["expiration_time"] > time.time():
        return jwks_cache["keys"]

    logger.info(f"Fetching JWKS from: {COGNITO_JWKS_URL}")
    try:
        with urllib.request.urlopen(COGNITO_JWKS_URL) as response:
            jwks_data = json.loads(response.read().decode("utf-8"))
    except Exception as e:
        logger.error(f"Error fetching JWKS: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not fetch Cognito public keys for token validation."
        )

    jwks_cache = {
        "keys": jwks_data["keys"],
        "expiration_time": time.time() + (60 * 60 * 24)
    }
    return jwks_cache["keys"]


def get_current_user(request: Request) -> Dict[str, Any]:
    """
    FastAPI dependency to validate the Cognito JWT from the Authorization header.

    Usage:
        @app.get("/secure-data", dependencies=[Depends(get_current_user)])
        def secure_endpoint():
            return {"message": "This is secure data."}
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header is missing",
        )

    # The token is expected to be in the format "Bearer <token>"
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
        )

    token = parts[1]

    # Find the right key to use for decoding
    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token header"
        )

    rsa_key = {}
    for key in get_jwks():
        if key["kid"] == unverified_header.get("kid"):
            rsa_key = {
                "kty": key["kty"],
                "kid": key["kid"],
                "use": key["use"],
                "n": key["n"],
                "e": key["e"],
            }
            break

    if not rsa_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unable to find a matching public key to verify the token",
        )

    # Decode and validate the token
    try:
        return jwt.decode(
            token,
            rsa_key,
            algorithms=["RS256"],
            audience=COGNITO_APP_CLIENT_ID,
            issuer=COGNITO_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired"
        )
    except jwt.JWTClaimsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token claims: {e}"
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token validation failed: {e}"
        )


def get_user_groups(user: Dict[str, Any]) -> List[str]:
    return list(user.get("cognito:groups") or [])


def get_user_identifier(user: Dict[str, Any]) -> str:
    """The stable subject id of the token; memberships are keyed by it."""
    identifier = user.get("sub")
    if not identifier:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no subject",
        )
    return identifier


def principal_from_claims(user: Dict[str, Any]) -> Principal:
    return Principal(
        user_id=get_user_identifier(user),
        is_admin=ADMIN_GROUP in get_user_groups(user),
    )


def get_principal(user: Dict[str, Any] = Depends(get_current_user)) -> Principal:
    return principal_from_claims(user)


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")
    return principal
