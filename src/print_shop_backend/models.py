from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    """Statuses the admin dashboard knows about; the store accepts any string."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    order_id: str = Field(alias="orderId")
    order_date: str = Field(alias="orderDate")
    status: str


class FileRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    size: int
    type: str
    path: str
    server_path: str = Field(alias="serverPath")


class StatusUpdate(BaseModel):
    status: str


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class LoginResponse(BaseModel):
    success: bool
    token: str


class MessageResponse(BaseModel):
    message: str


class HealthStatus(BaseModel):
    status: str
    timestamp: str


class ErrorResponse(BaseModel):
    error: str
