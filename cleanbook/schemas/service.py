"""Service catalog schemas."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class ServiceCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    icon: Optional[str] = Field(None, max_length=100)
    price: Optional[str] = Field(None, max_length=50)
    detailed_info: Optional[str] = None
    duration: Optional[str] = Field(None, max_length=100)
    features: Optional[str] = None


class ServiceUpdate(BaseModel):
    """Null means unchanged."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    icon: Optional[str] = Field(None, max_length=100)
    price: Optional[str] = Field(None, max_length=50)
    detailed_info: Optional[str] = None
    duration: Optional[str] = Field(None, max_length=100)
    features: Optional[str] = None


class ServiceResponse(BaseModel):
    id: int
    title: str
    description: str
    icon: Optional[str]
    price: Optional[str]
    detailed_info: Optional[str]
    duration: Optional[str]
    features: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
