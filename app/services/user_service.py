from sqlalchemy.orm import Session

from app.data.models.user import UserModel
from app.domain.errors import ConflictError, NotFoundError
from app.domain.schemas import UserCreate, UserRead, UserTokenOut
from app.repos.user_repo import UserRepo
from app.utils.security import create_access_token
from app.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserTokenOut:
        email = payload.email.strip().lower()

        if self.repo.get_user_by_email(email):
            raise ConflictError("User already exists")

        created = self.repo.create_user(UserModel(name=payload.name, email=email))
        logger.info(f"Registered user {created.id}")

        return UserTokenOut(
            **UserRead.model_validate(created).model_dump(),
            access_token=create_access_token(created.id),
        )

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return UserRead.model_validate(user)
