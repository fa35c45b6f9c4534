"""
Pydantic models for the model directory and the service catalogue.

A *model* is a bookable profile in the directory.  Catalogue
*services* are generic offers (with a base price and duration) that a
model may provide through a *model service* row, optionally with its
own price and duration.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

ModelCategory = Literal["Profissional", "Experiente", "Premium", "Exclusiva", "VIP", "Elite"]
MODEL_CATEGORIES = ("Profissional", "Experiente", "Premium", "Exclusiva", "VIP", "Elite")
VerificationStatus = Literal["pending", "verified", "rejected"]
ServiceCategory = Literal["standard", "premium", "vip", "exclusive"]


class ModelBase(BaseModel):
    stage_name: str = Field(..., min_length=1, examples=["Luna"])
    age: int = Field(..., ge=18, le=99, examples=[24])
    location: str = Field(..., min_length=1, examples=["Maputo"])
    category: ModelCategory = Field("Profissional")
    bio: Optional[str] = None
    main_photo_url: Optional[str] = None
    gallery_photos: List[str] = Field(default_factory=list)
    specialties: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)
    hourly_rate: Optional[float] = Field(None, ge=0)
    availability: str = "available"
    availability_schedule: Dict[str, Any] = Field(default_factory=dict)
    whatsapp: Optional[str] = None
    instagram: Optional[str] = None
    twitter: Optional[str] = None


class ModelCreate(ModelBase):
    """Schema for creating a model profile (administrators only)."""

    user_id: Optional[int] = Field(None, description="Account that manages this profile")
    is_featured: bool = False


class ModelUpdate(BaseModel):
    """Partial update of a model profile.

    Owners may change the descriptive fields; the flags at the bottom
    are honoured only for administrators.
    """

    stage_name: Optional[str] = Field(None, min_length=1)
    age: Optional[int] = Field(None, ge=18, le=99)
    location: Optional[str] = None
    category: Optional[ModelCategory] = None
    bio: Optional[str] = None
    main_photo_url: Optional[str] = None
    gallery_photos: Optional[List[str]] = None
    specialties: Optional[List[str]] = None
    languages: Optional[List[str]] = None
    hourly_rate: Optional[float] = Field(None, ge=0)
    availability: Optional[str] = None
    availability_schedule: Optional[Dict[str, Any]] = None
    whatsapp: Optional[str] = None
    instagram: Optional[str] = None
    twitter: Optional[str] = None
    # Administrator-only fields
    user_id: Optional[int] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    verification_status: Optional[VerificationStatus] = None


ADMIN_ONLY_MODEL_FIELDS = frozenset({"user_id", "is_active", "is_featured", "verification_status"})


class ModelRead(ModelBase):
    id: int
    user_id: Optional[int] = None
    category: str
    is_active: bool = True
    is_featured: bool = False
    rating: float = 5.0
    total_reviews: int = 0
    total_bookings: int = 0
    verification_status: str = "pending"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class ModelStats(BaseModel):
    total_bookings: int
    completed_bookings: int
    total_reviews: int
    average_rating: float


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, examples=["Jantar de gala"])
    description: Optional[str] = None
    icon: Optional[str] = None
    category: ServiceCategory = "standard"
    base_price: Optional[float] = Field(None, ge=0, examples=[2500.0])
    duration_hours: int = Field(1, ge=1)
    requirements: List[str] = Field(default_factory=list)
    includes: List[str] = Field(default_factory=list)


class ServiceRead(ServiceCreate):
    id: int
    category: str
    is_active: bool = True
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class ModelServiceCreate(BaseModel):
    service_id: int
    custom_price: Optional[float] = Field(None, ge=0)
    custom_duration: Optional[int] = Field(None, ge=1)
    is_available: bool = True
    special_notes: Optional[str] = None


class ModelServiceRead(ModelServiceCreate):
    id: int
    model_id: int
    created_at: Optional[datetime] = None
    service: Optional[ServiceRead] = None

    model_config = {
        "from_attributes": True,
        "protected_namespaces": (),
    }
