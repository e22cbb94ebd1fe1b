from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ..config import Settings, get_settings

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(
    api_key: str = Security(api_key_header),
    settings: Settings = Depends(get_settings),
):
    """
    Check the X-API-Key header against ALLOWED_API_KEYS.
    When no key is configured the API is open (local mode).
    """
    valid_keys = settings.api_keys_set

    if not valid_keys:
        return True

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key"
        )

    if api_key not in valid_keys:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key"
        )

    return True
