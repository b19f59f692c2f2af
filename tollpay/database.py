# tollpay/database.py
from datetime import datetime

from sqlalchemy import create_engine, Column, Integer, String, Float, DateTime
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from tollpay import config

Base = declarative_base()


def make_engine(url=None):
    """
    Build an engine for the transaction log.

    In-memory SQLite gets one shared connection so every session sees the
    same log for the lifetime of the process.
    """
    url = url or config.DATABASE_URL
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            future=True,
        )
    return create_engine(url, echo=False, future=True)


engine = make_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


class TollTransaction(Base):
    __tablename__ = "toll_transactions"
    seq = Column(Integer, primary_key=True, autoincrement=True)   # insertion order
    tx_id = Column(String, unique=True, index=True, nullable=False)
    vehicle_number = Column(String, nullable=False)
    vehicle_type = Column(String, nullable=False)                  # car/motorcycle/truck/bus
    toll_booth = Column(String, index=True, nullable=False)        # TB001...
    amount = Column(Float, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow)
    blockchain_hash = Column(String, nullable=False)
    status = Column(String, nullable=False)                        # confirmed (failed ones are never stored)


def init_db(bind=None):
    Base.metadata.create_all(bind or engine)
