from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from loguru import logger

from livebid.core.security.auth import decode_user_id
from livebid.models.user import User
from livebid.services.auction.service import AuctionService

jwt_bearer = HTTPBearer()


async def get_user_from_token(token: str) -> User:
    """Resolve the caller identity carried by a bearer token"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        user_id = decode_user_id(token)
    except JWTError as e:
        logger.warning(f"Authentication error: {str(e)}")
        raise credentials_exception

    user = await User.get_or_none(id=user_id)
    if user is None:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Inactive user"
        )
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(jwt_bearer)
) -> User:
    return await get_user_from_token(credentials.credentials)


async def admin_required(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        logger.warning(f"Admin access denied for user: {user.email}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required"
        )
    return user


def get_auction_service(request: Request) -> AuctionService:
    return request.app.state.auction_service
