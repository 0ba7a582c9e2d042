"""SQLAlchemy ORM models for customers, risk rules and transactions"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, Numeric, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class CustomerRecord(Base):
    """Customer profile"""

    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True, index=True)
    risk_profile = Column(Text, nullable=False)
    country = Column(Text, nullable=False)

    transactions = relationship("TransactionRecord", back_populates="customer")


class RiskRuleRecord(Base):
    """Risk rule; type-specific columns are null for other rule types"""

    __tablename__ = "risk_rules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    rule_name = Column(Text, nullable=False)
    rule_type = Column(Text, nullable=False)
    amount_threshold = Column(Numeric(19, 2), nullable=True)
    merchant_category = Column(Text, nullable=True)
    frequency_count = Column(Integer, nullable=True)
    frequency_window_minutes = Column(Integer, nullable=True)
    risk_points = Column(Integer, nullable=False)
    active = Column(Boolean, nullable=False, default=True)


class TransactionRecord(Base):
    """Submitted transaction with its risk decision"""

    __tablename__ = "transactions"
    __table_args__ = (
        Index("idx_transaction_customer_timestamp", "customer_id", "timestamp"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    amount = Column(Numeric(19, 2), nullable=False)
    currency = Column(Text, nullable=False)
    # Naive wall-clock time in the configured processing timezone
    timestamp = Column(DateTime, nullable=False, index=True)
    merchant_category = Column(Text, nullable=False, index=True)
    risk_score = Column(Integer, nullable=False)
    matched_rules_json = Column(Text, nullable=True)
    status = Column(Text, nullable=False, index=True)

    customer = relationship("CustomerRecord", back_populates="transactions")
