"""SQLAlchemy-backed SQLite record store implementing RecordStorePort."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from sqlalchemy import Column, Float, Integer, String, create_engine, func, select, update
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.types import JSON

from recosim.app.ports.record_store import (
    UNSEGMENTED,
    CustomerProfile,
    Interaction,
    Product,
    Purchase,
    PurchaseStats,
    RecordStorePort,
)

logger = logging.getLogger(__name__)

Base = declarative_base()

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def current_timestamp() -> str:
    """Return the local time formatted as stored in the event tables."""
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def format_timestamp(value: datetime | None) -> str:
    """Render an event time in the stored form, or now when ``value`` is None.

    Aware values are converted to local time first so every stored row
    compares correctly as text.
    """
    if value is None:
        return current_timestamp()
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value.strftime(TIMESTAMP_FORMAT)



class ProductRow(Base):
    __tablename__ = "products"

    # Surrogate key preserves catalog insertion order across edits.
    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(String(64), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False, default="")
    category = Column(String(100), nullable=False, default="")
    price = Column(Float, nullable=False, default=0.0)
    description = Column(String(2000), nullable=False, default="")
    tags = Column(JSON, nullable=False, default=list)
    popularity_score = Column(Float, nullable=False, default=0.0)


class CustomerRow(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(String(64), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False, default="")
    age = Column(Integer, nullable=True)
    gender = Column(String(32), nullable=True)
    location = Column(String(255), nullable=True)
    segment = Column(String(64), index=True, nullable=False, default=UNSEGMENTED)
    preferences = Column(JSON, nullable=False, default=dict)
    last_activity = Column(String(19), nullable=True)


class InteractionRow(Base):
    __tablename__ = "interactions"

    interaction_id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(String(64), index=True, nullable=False)
    product_id = Column(String(64), nullable=False)
    interaction_type = Column(String(32), nullable=False)
    timestamp = Column(String(19), nullable=False)
    duration = Column(Integer, nullable=False, default=0)


class PurchaseRow(Base):
    __tablename__ = "purchases"

    purchase_id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(String(64), index=True, nullable=False)
    product_id = Column(String(64), index=True, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    amount = Column(Float, nullable=False, default=0.0)
    timestamp = Column(String(19), nullable=False)


def _product_from_row(row: ProductRow) -> Product:
    return Product(
        product_id=row.product_id,
        name=row.name,
        category=row.category,
        price=row.price,
        description=row.description,
        tags=list(row.tags or []),
        popularity_score=row.popularity_score,
    )


def _customer_from_row(row: CustomerRow) -> CustomerProfile:
    return CustomerProfile(
        customer_id=row.customer_id,
        name=row.name,
        age=row.age,
        gender=row.gender,
        location=row.location,
        segment=row.segment,
        preferences=dict(row.preferences or {}),
        last_activity=row.last_activity,
    )


class SqliteRecordStore(RecordStorePort):
    """Record store over a SQLite file.

    All statements are built with SQLAlchemy expressions, so every identifier
    and free-text value travels as a bound parameter.
    """

    def __init__(self, database_path: Path | str, *, echo: bool = False) -> None:
        path = str(database_path)
        if path == ":memory:":
            url = "sqlite://"
        else:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            url = f"sqlite:///{path}"

        self._engine = create_engine(url, echo=echo)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        logger.debug("Opened record store at %s", path)

    def _session(self) -> Session:
        return self._session_factory()

    def close(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()

    # ------------------------------------------------------------------#
    # Queries consumed by the recommendation core
    # ------------------------------------------------------------------#

    def get_product_texts(self) -> list[tuple[str, str]]:
        with self._session() as session:
            rows = session.execute(select(ProductRow).order_by(ProductRow.id)).scalars().all()
            return [(row.product_id, _product_from_row(row).feature_text()) for row in rows]

    def get_customer_interactions(
        self, customer_id: str, limit: int, most_recent_first: bool = True
    ) -> list[str]:
        if limit <= 0:
            return []
        if most_recent_first:
            ordering = (InteractionRow.timestamp.desc(), InteractionRow.interaction_id.desc())
        else:
            ordering = (InteractionRow.timestamp.asc(), InteractionRow.interaction_id.asc())

        stmt = (
            select(InteractionRow.product_id)
            .where(InteractionRow.customer_id == customer_id)
            .order_by(*ordering)
            .limit(limit)
        )
        with self._session() as session:
            return list(session.execute(stmt).scalars().all())

    def get_customer_purchase_stats(self, customer_id: str) -> PurchaseStats:
        stmt = select(
            func.count(func.distinct(PurchaseRow.purchase_id)),
            func.coalesce(func.sum(PurchaseRow.amount), 0.0),
            # 'YYYY-MM' prefix of the stored timestamp identifies the calendar month.
            func.count(func.distinct(func.substr(PurchaseRow.timestamp, 1, 7))),
        ).where(PurchaseRow.customer_id == customer_id)

        with self._session() as session:
            purchase_count, total_spent, active_months = session.execute(stmt).one()

        return PurchaseStats(
            purchase_count=int(purchase_count or 0),
            total_spent=float(total_spent or 0.0),
            active_months=int(active_months or 0),
        )

    def get_products_by_popularity(self, top_n: int) -> list[str]:
        if top_n <= 0:
            return []
        stmt = (
            select(ProductRow.product_id)
            .order_by(ProductRow.popularity_score.desc(), ProductRow.id.asc())
            .limit(top_n)
        )
        with self._session() as session:
            return list(session.execute(stmt).scalars().all())

    def get_segment_purchase_ranking(self, segment_label: str, top_n: int) -> list[str]:
        if top_n <= 0:
            return []
        purchase_count = func.count(PurchaseRow.purchase_id)
        stmt = (
            select(PurchaseRow.product_id)
            .join(CustomerRow, CustomerRow.customer_id == PurchaseRow.customer_id)
            .join(ProductRow, ProductRow.product_id == PurchaseRow.product_id)
            .where(CustomerRow.segment == segment_label)
            .group_by(PurchaseRow.product_id)
            .order_by(purchase_count.desc(), func.min(ProductRow.id).asc())
            .limit(top_n)
        )
        with self._session() as session:
            return list(session.execute(stmt).scalars().all())

    def count_customer_interactions(self, customer_id: str) -> int:
        stmt = select(func.count(func.distinct(InteractionRow.interaction_id))).where(
            InteractionRow.customer_id == customer_id
        )
        with self._session() as session:
            return int(session.execute(stmt).scalar_one() or 0)

    def get_customer_segment(self, customer_id: str) -> str | None:
        stmt = select(CustomerRow.segment).where(CustomerRow.customer_id == customer_id)
        with self._session() as session:
            return session.execute(stmt).scalar_one_or_none()

    def list_customer_ids(self) -> list[str]:
        stmt = select(CustomerRow.customer_id).order_by(CustomerRow.id)
        with self._session() as session:
            return list(session.execute(stmt).scalars().all())

    def set_customer_segments(self, assignments: dict[str, str]) -> None:
        if not assignments:
            return
        with self._session() as session, session.begin():
            for customer_id, label in assignments.items():
                session.execute(
                    update(CustomerRow)
                    .where(CustomerRow.customer_id == customer_id)
                    .values(segment=label)
                )
        logger.info("Persisted %d segment assignments", len(assignments))

    # ------------------------------------------------------------------#
    # Catalog and customer records
    # ------------------------------------------------------------------#

    def add_product(self, product: Product) -> None:
        values = product.model_dump()
        with self._session() as session, session.begin():
            row = session.execute(
                select(ProductRow).where(ProductRow.product_id == product.product_id)
            ).scalar_one_or_none()
            if row is None:
                session.add(ProductRow(**values))
            else:
                for field, value in values.items():
                    setattr(row, field, value)

    def get_product(self, product_id: str) -> Product | None:
        with self._session() as session:
            row = session.execute(
                select(ProductRow).where(ProductRow.product_id == product_id)
            ).scalar_one_or_none()
            return _product_from_row(row) if row is not None else None

    def get_customer(self, customer_id: str) -> CustomerProfile | None:
        with self._session() as session:
            row = session.execute(
                select(CustomerRow).where(CustomerRow.customer_id == customer_id)
            ).scalar_one_or_none()
            return _customer_from_row(row) if row is not None else None

    def upsert_customer(self, profile: CustomerProfile) -> None:
        """Insert a profile, or update only the fields explicitly set on ``profile``."""
        now = current_timestamp()
        with self._session() as session, session.begin():
            row = session.execute(
                select(CustomerRow).where(CustomerRow.customer_id == profile.customer_id)
            ).scalar_one_or_none()
            if row is None:
                values = profile.model_dump()
                values["last_activity"] = values.get("last_activity") or now
                session.add(CustomerRow(**values))
            else:
                for field, value in profile.model_dump(exclude_unset=True).items():
                    setattr(row, field, value)
                row.last_activity = now

    def record_interaction(self, interaction: Interaction) -> None:
        with self._session() as session, session.begin():
            session.add(
                InteractionRow(
                    customer_id=interaction.customer_id,
                    product_id=interaction.product_id,
                    interaction_type=interaction.interaction_type.value,
                    timestamp=format_timestamp(interaction.timestamp),
                    duration=interaction.duration,
                )
            )

    def record_purchase(self, purchase: Purchase) -> None:
        with self._session() as session, session.begin():
            session.add(
                PurchaseRow(
                    customer_id=purchase.customer_id,
                    product_id=purchase.product_id,
                    quantity=purchase.quantity,
                    amount=purchase.amount,
                    timestamp=format_timestamp(purchase.timestamp),
                )
            )
