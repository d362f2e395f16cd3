import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from storefront.core.exceptions import ConflictError
from storefront.domain.models import Product
from storefront.domain.normalization import apply_search_fields, slugify
from storefront.domain.schemas import CatalogQuery
from storefront.infrastructure.repositories.order_repository import persistence_error
from storefront.interfaces.IProductRepository import IProductRepository

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "price-asc": Product.price.asc(),
    "price-desc": Product.price.desc(),
    "name-asc": Product.name.asc(),
    "name-desc": Product.name.desc(),
}


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def prepare_for_write(product: Product):
    """Derived fields are computed explicitly here, before every write."""
    apply_search_fields(product)
    if not product.slug:
        product.slug = slugify(product.name, product.external_id[:8])


class SqlProductRepository(IProductRepository):

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get_by_external_id_or_slug(self, key: str) -> Optional[Product]:
        with self.session_factory() as session:
            try:
                stmt = select(Product).where(or_(Product.external_id == key, Product.slug == key))
                return session.scalars(stmt).first()
            except SQLAlchemyError as e:
                raise persistence_error(e, "load the product") from e

    def list_by_group(self, query: CatalogQuery) -> Tuple[List[Product], int]:
        stmt = select(Product).where(Product.group_id == query.group_id)

        if query.categories:
            stmt = stmt.where(Product.category.in_(query.categories))
        if query.min_price is not None:
            stmt = stmt.where(Product.price >= query.min_price)
        if query.max_price is not None:
            stmt = stmt.where(Product.price <= query.max_price)
        if query.in_stock:
            stmt = stmt.where(Product.quantity > 0)

        with self.session_factory() as session:
            try:
                total = session.scalar(select(func.count()).select_from(stmt.subquery()))
                if query.sort in SORT_COLUMNS:
                    stmt = stmt.order_by(SORT_COLUMNS[query.sort], Product.id)
                else:
                    stmt = stmt.order_by(Product.id)
                rows = session.scalars(stmt.offset(query.offset).limit(query.limit)).all()
                return list(rows), total or 0
            except SQLAlchemyError as e:
                raise persistence_error(e, "list the catalog") from e

    def list_all(self, offset: int, limit: int) -> Tuple[List[Product], int]:
        with self.session_factory() as session:
            try:
                total = session.scalar(select(func.count(Product.id)))
                rows = session.scalars(select(Product).order_by(Product.id).offset(offset).limit(limit)).all()
                return list(rows), total or 0
            except SQLAlchemyError as e:
                raise persistence_error(e, "list products") from e

    def search(self, term: str, offset: int, limit: int) -> List[Product]:
        escaped = _escape_like(term)
        conditions = []
        for column in (Product.name_search, Product.full_name_search):
            # start of the field or start of any word inside it
            conditions.append(column.like(f"{escaped}%", escape="\\"))
            conditions.append(column.like(f"% {escaped}%", escape="\\"))

        stmt = (
            select(Product)
            .where(or_(*conditions))
            .order_by(Product.name_search, Product.id)
            .offset(offset)
            .limit(limit)
        )
        with self.session_factory() as session:
            try:
                return list(session.scalars(stmt).all())
            except SQLAlchemyError as e:
                raise persistence_error(e, "search products") from e

    def list_categories(self) -> List[str]:
        stmt = select(Product.category).where(Product.category.is_not(None)).distinct().order_by(Product.category)
        with self.session_factory() as session:
            try:
                return [c for c in session.scalars(stmt).all() if c]
            except SQLAlchemyError as e:
                raise persistence_error(e, "list categories") from e

    def add(self, product: Product) -> Product:
        prepare_for_write(product)
        session = self.session_factory()
        try:
            session.add(product)
            session.commit()
            session.refresh(product)
            session.expunge(product)
            return product
        except IntegrityError as e:
            session.rollback()
            raise ConflictError("Product with this externalId already exists") from e
        except SQLAlchemyError as e:
            session.rollback()
            raise persistence_error(e, "save the product") from e
        finally:
            session.close()

    def replace_all(self, products: Iterable[Product]) -> int:
        session = self.session_factory()
        try:
            session.execute(delete(Product))
            count = 0
            for product in products:
                prepare_for_write(product)
                session.add(product)
                count += 1
            session.commit()
            logger.info(f"✅ Replaced catalog with {count} products")
            return count
        except IntegrityError as e:
            session.rollback()
            raise ConflictError("Catalog contains duplicate product ids") from e
        except SQLAlchemyError as e:
            session.rollback()
            raise persistence_error(e, "replace the catalog") from e
        finally:
            session.close()

    def rebuild_search_fields(self, batch_size: int = 1000) -> Tuple[int, int]:
        seen = modified = 0
        last_id = 0
        session = self.session_factory()
        try:
            while True:
                batch = session.scalars(
                    select(Product).where(Product.id > last_id).order_by(Product.id).limit(batch_size)
                ).all()
                if not batch:
                    break
                for product in batch:
                    seen += 1
                    if apply_search_fields(product):
                        modified += 1
                last_id = batch[-1].id
                session.commit()
                logger.info(f"[PROGRESS] seen={seen} modified={modified}")
            return seen, modified
        except SQLAlchemyError as e:
            session.rollback()
            raise persistence_error(e, "rebuild search fields") from e
        finally:
            session.close()
