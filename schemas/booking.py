from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

VehicleType = Literal["car", "bike", "truck", "van", "bicycle"]
PaymentMethod = Literal["card", "upi", "wallet", "cash", "razorpay", "stripe"]


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class VehicleIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: VehicleType
    license_plate: str = Field(..., min_length=1, max_length=20)
    model: Optional[str] = Field(None, max_length=60)
    color: Optional[str] = Field(None, max_length=30)

    @field_validator("license_plate")
    @classmethod
    def normalize_plate(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("License plate is required")
        return v


class CreateBookingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    facility_id: int
    vehicle: VehicleIn
    start_time: datetime
    end_time: datetime
    slot_code: Optional[str] = Field(None, max_length=32)
    services: List[int] = Field(default_factory=list, max_length=20)
    payment_method: PaymentMethod
    # Non-interactive flows only; refused unless ALLOW_SIMULATED_PAYMENT is on
    simulate_payment: bool = False

    @field_validator("start_time", "end_time")
    @classmethod
    def naive_utc(cls, v: datetime) -> datetime:
        return _to_naive_utc(v)


class UpdateStatusRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: Literal["confirmed", "active", "completed", "cancelled"]
    reason: Optional[str] = Field(None, max_length=500)


class CancelRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reason: Optional[str] = Field(None, max_length=500)


class ExtendRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    additional_hours: int = Field(..., ge=1)


class StartPaymentRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    booking_id: int
