"""Service catalog model."""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text
from cleanbook.database import Base


class Service(Base):
    """A cleaning service offered in the public catalog."""

    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    icon = Column(String(100))
    price = Column(String(50))  # Display value, e.g. "80" or "from 80"
    detailed_info = Column(Text)
    duration = Column(String(100))
    features = Column(Text)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Service {self.title}>"
