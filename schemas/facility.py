from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.booking import VehicleType

ServiceCategory = Literal[
    "car-wash", "maintenance", "fuel", "food-beverage",
    "valet", "charging", "insurance", "emergency",
]


class CreateFacilityRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=120)
    total: int = Field(..., ge=1)
    hourly_rate: int = Field(..., ge=0)
    currency: str = Field("INR", min_length=3, max_length=10)
    vehicle_types: List[VehicleType] = Field(default_factory=lambda: ["car"], min_length=1)


class ResizeCapacityRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    total: int = Field(..., ge=1)


class GenerateLayoutRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    levels: int = Field(1, ge=1, le=20)
    rows: int = Field(5, ge=1, le=100)
    cols: int = Field(10, ge=1, le=100)
    type: VehicleType = "car"


class SlotStatusRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: Literal["available", "maintenance"]


class CreateServiceRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    category: ServiceCategory
    base_price: int = Field(..., ge=0)
    unit: Literal["per-service", "per-hour", "per-item"] = "per-service"


class ServiceAvailabilityRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    facility_id: int
    custom_price: Optional[int] = Field(None, ge=0)
    is_active: bool = True
