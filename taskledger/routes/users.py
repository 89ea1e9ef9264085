"""User registration, profile and account routes."""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, status

from ..deps import get_user_repository
from ..exceptions import DuplicateUserError, PersistenceError
from ..models.user import User
from ..repositories.user_repository import UserRepository
from ..schemas import UserCreate, UserProfileUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_found(user_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User {user_id} not found")


def _found(user, user_id: str) -> User:
    if user is None:
        raise _not_found(user_id)
    return user


@router.post("/", response_model=User, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    repository: UserRepository = Depends(get_user_repository)
) -> User:
    """Register a new user.

    Raises:
        HTTPException: 409 if the username or email is taken, 400 if invalid
    """
    try:
        logger.info(f"Registering user: {user_data.username}")
        return repository.create(user_data)

    except DuplicateUserError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except PersistenceError:
        raise
    except ValueError as e:
        logger.error(f"Validation error creating user: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/", response_model=List[User])
async def list_active_users(repository: UserRepository = Depends(get_user_repository)) -> List[User]:
    return repository.find_active()


@router.get("/by-username/{username}", response_model=User)
async def get_user_by_username(
    username: str,
    repository: UserRepository = Depends(get_user_repository)
) -> User:
    return _found(repository.find_by_username(username), username)


@router.get("/{user_id}", response_model=User)
async def get_user(
    user_id: str,
    repository: UserRepository = Depends(get_user_repository)
) -> User:
    return _found(repository.find_by_id(user_id), user_id)


@router.patch("/{user_id}", response_model=User)
async def update_user_profile(
    user_id: str,
    profile: UserProfileUpdate,
    repository: UserRepository = Depends(get_user_repository)
) -> User:
    """Change a user's full name and/or email."""
    try:
        user = repository.update_profile(user_id, full_name=profile.full_name, email=profile.email)
        return _found(user, user_id)

    except (HTTPException, PersistenceError):
        raise
    except DuplicateUserError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        logger.error(f"Validation error updating user {user_id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.patch("/{user_id}/preferences", response_model=User)
async def update_user_preferences(
    user_id: str,
    preferences: Dict[str, Any] = Body(...),
    repository: UserRepository = Depends(get_user_repository)
) -> User:
    """Merge preferences; unrecognised keys are ignored.

    Raises:
        HTTPException: 404 if the user does not exist, 400 for invalid values
    """
    try:
        return _found(repository.update_preferences(user_id, preferences), user_id)

    except (HTTPException, PersistenceError):
        raise
    except ValueError as e:
        logger.error(f"Validation error updating preferences for {user_id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{user_id}/activate", response_model=User)
async def activate_user(user_id: str, repository: UserRepository = Depends(get_user_repository)) -> User:
    return _found(repository.activate(user_id), user_id)


@router.post("/{user_id}/deactivate", response_model=User)
async def deactivate_user(user_id: str, repository: UserRepository = Depends(get_user_repository)) -> User:
    return _found(repository.deactivate(user_id), user_id)


@router.post("/{user_id}/logins", response_model=User)
async def record_user_login(user_id: str, repository: UserRepository = Depends(get_user_repository)) -> User:
    """Stamp the user's last login time."""
    return _found(repository.record_login(user_id), user_id)
