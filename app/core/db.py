"""DB models and helpers for the CNAB Store importer."""

from decimal import Decimal

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    Select,
    String,
    UniqueConstraint,
    create_engine,
    func,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker

from app.core.exceptions import StorageError
from app.core.models import StoredTransaction, StoreSummary, TransactionRecord
from app.core.transaction_types import TransactionType
from app.core.utils import get_logger

Base = declarative_base()
CENTS = Decimal("0.01")

logger = get_logger("cnab-store.db")


class Store(Base):
    """A merchant, identified by its name and owner name."""

    __tablename__ = "stores"
    __table_args__ = (UniqueConstraint("name", "owner_name", name="ux_stores_name_owner_name"),)

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, index=True)
    owner_name = Column(String(100), nullable=False, index=True)

    transactions = relationship("Transaction", back_populates="store", cascade="all, delete-orphan")


class Transaction(Base):
    """A CNAB transaction persisted against its store."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    type = Column(Integer, nullable=False)
    occurred_at = Column(DateTime, nullable=False, index=True)
    value = Column(Numeric(18, 2), nullable=False)
    cpf = Column(String(11), nullable=False, index=True)
    card = Column(String(12), nullable=False)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)

    store = relationship("Store", back_populates="transactions")


def get_engine() -> Engine:
    """Create a SQLAlchemy engine using the configured database URL."""
    from app.core.settings import get_settings

    url = get_settings().database_url
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url)


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_db() -> "DBHelper":
    """Get a DBHelper instance using a SQLAlchemy session."""
    session = SessionLocal()
    return DBHelper(session)


def _money(value: object) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENTS)


def _summary_from_row(row: object) -> StoreSummary:
    return StoreSummary(
        store_id=row.id,
        store_name=row.name,
        owner_name=row.owner_name,
        total_balance=_money(row.total_balance),
    )


class DBHelper:
    """Storage operations used by the importer and the read endpoints."""

    def __init__(self, session: Session) -> None:
        """Initialize the DBHelper with a SQLAlchemy session."""
        self.session = session

    def find_store(self, name: str, owner_name: str) -> Store | None:
        """Look up a persisted store by its exact name and owner name."""
        stmt = select(Store).where(Store.name == name, Store.owner_name == owner_name)
        return self.session.execute(stmt).scalars().first()

    def create_store(self, name: str, owner_name: str) -> Store:
        """Stage a new store. It is written on the next commit."""
        store = Store(name=name, owner_name=owner_name)
        self.session.add(store)
        return store

    def add_transaction(self, store: Store, record: TransactionRecord) -> Transaction:
        """Stage a transaction for ``store`` built from a parsed record."""
        transaction = Transaction(
            type=int(record.type),
            occurred_at=record.occurred_at,
            value=record.value,
            cpf=record.cpf,
            card=record.card,
            store=store,
        )
        self.session.add(transaction)
        return transaction

    def commit(self) -> None:
        """Write all staged changes in one transaction, or none of them."""
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Commit failed, rolling back")
            self.session.rollback()
            raise StorageError("Failed to persist imported data.", {"reason": str(exc)}) from exc

    def rollback(self) -> None:
        """Discard all staged changes."""
        self.session.rollback()

    def _summary_query(self) -> Select:
        balance = func.coalesce(func.sum(Transaction.value), 0).label("total_balance")
        return (
            select(Store.id, Store.name, Store.owner_name, balance)
            .outerjoin(Transaction, Transaction.store_id == Store.id)
            .group_by(Store.id, Store.name, Store.owner_name)
        )

    def count_stores(self) -> int:
        """Number of persisted stores."""
        return self.session.execute(select(func.count()).select_from(Store)).scalar_one()

    def get_store_summaries(self, page: int, page_size: int) -> list[StoreSummary]:
        """Return one page of stores ordered by name, each with its balance."""
        stmt = self._summary_query().order_by(Store.name, Store.id).offset((page - 1) * page_size).limit(page_size)
        rows = self.session.execute(stmt).all()
        return [_summary_from_row(row) for row in rows]

    def get_store(self, store_id: int) -> StoreSummary | None:
        """Return a single store with its balance, or None when it does not exist."""
        row = self.session.execute(self._summary_query().where(Store.id == store_id)).first()
        if not row:
            return None
        return _summary_from_row(row)

    def count_store_transactions(self, store_id: int) -> int:
        """Number of transactions recorded for a store."""
        stmt = select(func.count()).select_from(Transaction).where(Transaction.store_id == store_id)
        return self.session.execute(stmt).scalar_one()

    def get_store_transactions(self, store_id: int, page: int, page_size: int) -> list[StoredTransaction]:
        """Return one page of a store's transactions, oldest first."""
        stmt = (
            select(Transaction)
            .where(Transaction.store_id == store_id)
            .order_by(Transaction.occurred_at, Transaction.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        items = []
        for txn in self.session.execute(stmt).scalars():
            info = TransactionType(txn.type).info
            items.append(
                StoredTransaction(
                    id=txn.id,
                    type=info.type,
                    description=info.description,
                    nature=info.nature,
                    occurred_at=txn.occurred_at,
                    value=_money(txn.value),
                    cpf=txn.cpf,
                    card=txn.card,
                )
            )
        return items

    def close(self) -> None:
        """Close the SQLAlchemy session."""
        self.session.close()
