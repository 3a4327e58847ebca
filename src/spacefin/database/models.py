"""SQLAlchemy models for the spacefin invoice store."""

from datetime import datetime, UTC
from decimal import Decimal

from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


class DecimalText(TypeDecorator):
    """Decimal stored as its exact text form.

    SQLite has no decimal type and its Numeric affinity goes through float,
    so amounts and rates are kept as strings and read back unchanged.
    """

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(Decimal(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


Money = DecimalText()
Rate = DecimalText()


class Invoice(Base):
    """Invoice model."""

    __tablename__ = "invoices"

    id = Column(String, primary_key=True)
    order_id = Column(String, nullable=True, index=True)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=True, index=True)
    customer_phone = Column(String, nullable=True)
    tax_rate = Column(Rate, nullable=False, default=0)
    discount_rate = Column(Rate, nullable=False, default=0)
    subtotal = Column(Money, nullable=False, default=0)
    discount_amount = Column(Money, nullable=False, default=0)
    tax_amount = Column(Money, nullable=False, default=0)
    total = Column(Money, nullable=False, default=0)
    status = Column(String, nullable=False, default="draft", index=True)
    issue_date = Column(Date, nullable=True)
    payment_term = Column(String, nullable=True)
    due_date = Column(Date, nullable=True)
    paid_date = Column(Date, nullable=True)
    paid_amount = Column(Money, nullable=False, default=0)
    payment_method = Column(String, nullable=True)
    payment_reference = Column(String, nullable=True)
    service_name = Column(String, nullable=True)
    city_name = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    items = relationship(
        "LineItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="LineItem.position",
    )


class LineItem(Base):
    """Invoice line item model."""

    __tablename__ = "line_items"

    id = Column(Integer, primary_key=True)
    invoice_id = Column(String, ForeignKey("invoices.id"), nullable=False)
    position = Column(Integer, nullable=False)
    description = Column(String, nullable=False)
    quantity = Column(Money, nullable=False)
    unit_price = Column(Money, nullable=False)

    # Relationships
    invoice = relationship("Invoice", back_populates="items")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
