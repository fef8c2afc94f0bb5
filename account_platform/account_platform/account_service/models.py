from sqlalchemy import Column, Integer, String, DateTime
from .db import Base


MEMBERSHIP_LEVELS = ("Bronze", "Silver", "Gold", "Platinum")


class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True)
    # unique index is the real guarantee of one account per email
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    membership_id = Column(String, nullable=True)
    membership_level = Column(String, default="Bronze", nullable=False)
    points = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
