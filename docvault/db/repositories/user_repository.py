import logging
import uuid
from typing import List, Optional, Set

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.core.exceptions import CatalogError
from docvault.db.models.user import User as UserModel
from docvault.domains.identity.entities import Principal, User

logger = logging.getLogger(__name__)


class UserRepository:
    """Репозиторий владельцев документов"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, user: User) -> User:
        """Создание записи владельца"""
        db_user = UserModel(
            uuid=user.uuid,
            username=user.username,
            plan=user.plan,
            document_ids=self._serialize_ids(user.document_ids),
            created_at=user.created_at,
            updated_at=user.updated_at
        )

        self.session.add(db_user)
        try:
            await self.session.commit()
            await self.session.refresh(db_user)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to create user record {user.uuid}: {e}")
            raise CatalogError("User record could not be saved")
        return self._to_domain(db_user)

    async def get_by_uuid(self, user_uuid: uuid.UUID) -> Optional[User]:
        """Получение владельца по UUID"""
        try:
            result = await self.session.execute(
                select(UserModel)
                .where(UserModel.uuid == user_uuid)
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to load user record {user_uuid}: {e}")
            raise CatalogError("User record could not be loaded")
        db_user = result.scalar_one_or_none()
        return self._to_domain(db_user) if db_user else None

    async def get_or_create(self, principal: Principal) -> User:
        """Запись владельца для принципала; создается при первом обращении"""
        user = await self.get_by_uuid(principal.id)
        if user is not None:
            if user.plan != principal.plan or user.username != principal.username:
                user.plan = principal.plan
                user.username = principal.username
                user = await self.update(user)
            return user

        try:
            return await self.create(User.from_principal(principal))
        except CatalogError:
            # Параллельный запрос мог создать запись раньше
            user = await self.get_by_uuid(principal.id)
            if user is None:
                raise
            return user

    async def update(self, user: User) -> User:
        """Сохранение плана, имени и списка ссылок на документы"""
        stmt = (
            update(UserModel)
            .where(UserModel.uuid == user.uuid)
            .values(
                username=user.username,
                plan=user.plan,
                document_ids=self._serialize_ids(user.document_ids),
                updated_at=user.updated_at
            )
        )

        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to update user record {user.uuid}: {e}")
            raise CatalogError("User record could not be saved")

        if result.rowcount == 0:
            raise CatalogError(f"User record {user.uuid} does not exist")
        return user

    async def get_all(self) -> List[User]:
        """Все владельцы"""
        try:
            result = await self.session.execute(select(UserModel))
        except SQLAlchemyError as e:
            logger.error(f"Failed to list user records: {e}")
            raise CatalogError("User records could not be loaded")
        return [self._to_domain(db_user) for db_user in result.scalars().all()]

    async def distinct_plans(self) -> Set[str]:
        """Имена планов, встречающиеся у владельцев"""
        result = await self.session.execute(select(UserModel.plan).distinct())
        return set(result.scalars().all())

    def _serialize_ids(self, document_ids: List[uuid.UUID]) -> List[str]:
        return [str(document_id) for document_id in document_ids]

    def _to_domain(self, db_user: UserModel) -> User:
        """Преобразование модели БД в доменную сущность"""
        return User(
            uuid=db_user.uuid,
            username=db_user.username,
            plan=db_user.plan,
            document_ids=[uuid.UUID(document_id) for document_id in db_user.document_ids or []],
            created_at=db_user.created_at,
            updated_at=db_user.updated_at
        )
