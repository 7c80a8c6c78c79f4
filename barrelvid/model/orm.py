from sqlalchemy.orm import declarative_base
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
)

from ..helpers import utcnow


Base = declarative_base()


# ----------------------------
# ORM models
# ----------------------------
class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    username = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=False)


class Event(Base):
    __tablename__ = "events"
    # never hand out the id of a deleted row again
    __table_args__ = {"sqlite_autoincrement": True}
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    date = Column(String, nullable=False)  # free text, e.g. "June 15-17, 2023"
    thumbnail_url = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Rider(Base):
    __tablename__ = "riders"
    __table_args__ = {"sqlite_autoincrement": True}
    id = Column(Integer, primary_key=True)
    # cascade is done by the catalog store, not by the database
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False,
                      index=True)
    name = Column(String, nullable=False)
    price = Column(Integer, nullable=False, default=80)
    thumbnail_url = Column(Text, nullable=False, default="")
    video_url = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Purchase(Base):
    __tablename__ = "purchases"
    __table_args__ = {"sqlite_autoincrement": True}
    id = Column(Integer, primary_key=True)
    email = Column(String, nullable=False)
    # lowercased copy of email, entitlement lookups go through this
    email_key = Column(String, nullable=False, index=True)
    # soft references: no FK, a rider delete leaves purchases alone
    rider_id = Column(Integer, nullable=False, index=True)
    event_id = Column(Integer, nullable=True, index=True)
    payment_method = Column(String, nullable=False)  # stripe | paypal
    amount = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
