"""Customer account model."""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from cleanbook.database import Base


class User(Base):
    """User entity - customers who book cleanings."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Profile
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)  # Stored lowercased
    phone = Column(String(32))
    address = Column(Text)

    # Auth
    password_hash = Column(String(255))
    email_verified = Column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<User {self.email}>"
