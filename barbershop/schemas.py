from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional, Union

from pydantic import BaseModel, EmailStr, Field


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(max_length=255)
    name: str = Field(max_length=100)
    phone: str = Field(max_length=30)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(max_length=255)


class UserOut(BaseModel):
    id: int
    email: EmailStr
    role: str
    must_change_password: bool
    is_active: bool
    name: Optional[str] = None
    phone: Optional[str] = None
    photo: Optional[str] = None


class RegisterResponse(BaseModel):
    success: bool = True
    message: str
    user_id: int


class LoginResponse(BaseModel):
    success: bool = True
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserOut


class RefreshRequest(BaseModel):
    refresh_token: str


class AccessTokenResponse(BaseModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"


class LogoutRequest(BaseModel):
    refresh_token: Optional[str] = None


class ValidateResponse(BaseModel):
    valid: bool
    user: UserOut


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ForgotPasswordResponse(BaseModel):
    success: bool = True
    message: str
    reset_token: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=30)
    photo: Optional[str] = None


class AdminUserUpdate(BaseModel):
    is_active: Optional[bool] = None
    must_change_password: Optional[bool] = None
    role: Optional[Literal["customer", "admin"]] = None


class AdminPasswordRequest(BaseModel):
    new_password: str


class ServiceIn(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    duration: Optional[int] = Field(default=None, gt=0)
    duration_min: Optional[int] = Field(default=None, gt=0)
    icon: Optional[str] = None
    active: Optional[bool] = None


class ServiceOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    duration_minutes: int
    icon: str
    active: bool



class BarberIn(BaseModel):
    name: Optional[str] = None
    bio: Optional[str] = None
    photo: Optional[str] = None
    specialties: Optional[Union[list[str], str]] = None
    active: Optional[bool] = None


class BarberOut(BaseModel):
    id: int
    name: str
    bio: Optional[str] = None
    photo: Optional[str] = None
    specialties: list[str]
    active: bool


class EstablishmentIn(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    contact: Optional[str] = None
    active: Optional[bool] = None


class EstablishmentOut(BaseModel):
    id: int
    name: str
    address: Optional[str] = None
    contact: Optional[str] = None
    active: bool



class AppointmentCreate(BaseModel):
    user_id: Optional[int] = None
    barber_id: Optional[int] = None
    service_id: Optional[int] = None
    date: Optional[str] = None
    time: Optional[str] = None
    notes: Optional[str] = Field(default="", max_length=500)


class AppointmentUpdate(BaseModel):
    barber_id: Optional[int] = None
    service_id: Optional[int] = None
    date: Optional[str] = None
    time: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class StatusUpdate(BaseModel):
    status: Optional[str] = None


class AppointmentOut(BaseModel):
    id: int
    user_id: int
    barber_id: Optional[int] = None
    service_id: int
    date_time: str
    date: str
    time: str
    status: str
    stored_status: str
    notes: str
    service_name: Optional[str] = None
    service_price: Optional[float] = None
    service_duration: Optional[int] = None
    barber_name: Optional[str] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    created_at: Optional[datetime] = None


class AppointmentResponse(BaseModel):
    success: bool = True
    appointment: AppointmentOut


class AppointmentListResponse(BaseModel):
    success: bool = True
    appointments: list[AppointmentOut]


class AvailabilityOut(BaseModel):
    success: bool = True
    service_id: int
    date: str
    barber_id: Optional[int] = None
    available: list[str]
    occupied: list[str]
    total_available: int


class ServiceResponse(BaseModel):
    success: bool = True
    service: ServiceOut


class ServiceListResponse(BaseModel):
    success: bool = True
    services: list[ServiceOut]


class BarberResponse(BaseModel):
    success: bool = True
    barber: BarberOut


class BarberListResponse(BaseModel):
    success: bool = True
    barbers: list[BarberOut]


class EstablishmentResponse(BaseModel):
    success: bool = True
    establishment: EstablishmentOut


class EstablishmentListResponse(BaseModel):
    success: bool = True
    establishments: list[EstablishmentOut]


class UserResponse(BaseModel):
    success: bool = True
    user: UserOut


class UserListResponse(BaseModel):
    success: bool = True
    users: list[UserOut]
