from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from storefront.core.exceptions import ConflictError
from storefront.domain.models import User
from storefront.infrastructure.repositories.order_repository import persistence_error
from storefront.interfaces.IUserRepository import IUserRepository


class SqlUserRepository(IUserRepository):

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get_by_email(self, email: str) -> Optional[User]:
        with self.session_factory() as session:
            try:
                return session.scalars(select(User).where(User.email == email.strip().lower())).first()
            except SQLAlchemyError as e:
                raise persistence_error(e, "load the user") from e

    def get(self, user_id: str) -> Optional[User]:
        with self.session_factory() as session:
            try:
                return session.get(User, user_id)
            except SQLAlchemyError as e:
                raise persistence_error(e, "load the user") from e

    def create(self, user: User) -> User:
        user.email = user.email.strip().lower()
        session = self.session_factory()
        try:
            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)
            return user
        except IntegrityError as e:
            # unique index on email; two concurrent registrations end up here
            session.rollback()
            raise ConflictError("Email already in use") from e
        except SQLAlchemyError as e:
            session.rollback()
            raise persistence_error(e, "create the user") from e
        finally:
            session.close()
