"""
Request schemas.

Every endpoint that takes input validates it against one of these models
before any domain logic runs; a failure becomes a 400 ``validation_error``.
"""
from decimal import Decimal
from typing import Literal, Optional

from flask import request
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ApiError, validation_error
from .utils.sanitize import sanitize_dict, sanitize_string


class Schema(BaseModel):
    model_config = ConfigDict(extra='ignore', str_strip_whitespace=True)


# === Mechanics ===

class NearbyQuery(Schema):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    radius: Optional[float] = Field(default=None, gt=0)
    specialization: Optional[str] = None

    @field_validator('radius', mode='before')
    @classmethod
    def blank_radius(cls, value):
        return None if value == '' else value


class AvailabilityUpdate(Schema):
    """Omitting ``is_available`` toggles the current value."""
    is_available: Optional[bool] = None


class LocationUpdate(Schema):
    latitude: float = Field(ge=-90, le=90, validation_alias=AliasChoices('latitude', 'lat'))
    longitude: float = Field(ge=-180, le=180, validation_alias=AliasChoices('longitude', 'lng'))


# === Service requests ===

class LocationIn(Schema):
    lat: float = Field(ge=-90, le=90, validation_alias=AliasChoices('lat', 'latitude'))
    lng: float = Field(ge=-180, le=180, validation_alias=AliasChoices('lng', 'longitude'))
    address: Optional[str] = Field(default=None, max_length=500)

    @field_validator('address')
    @classmethod
    def clean_address(cls, value):
        return sanitize_string(value)


class CreateServiceRequest(Schema):
    mechanic_id: str = Field(min_length=1)
    vehicle_id: str = Field(min_length=1)
    category_id: str = Field(min_length=1)
    problem_description: str = Field(min_length=1, max_length=2000)
    customer_location: LocationIn

    @field_validator('problem_description')
    @classmethod
    def clean_description(cls, value):
        return sanitize_string(value)


class CustomerCompletion(Schema):
    material_cost: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    labor_cost: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    rating: int = Field(ge=1, le=5)
    review: Optional[str] = Field(default=None, max_length=2000)

    @field_validator('review')
    @classmethod
    def clean_review(cls, value):
        return sanitize_string(value)


class RequestListQuery(Schema):
    status: Optional[Literal['pending', 'accepted', 'in_progress', 'completed', 'cancelled']] = None


# === Wallet ===

class WalletQuery(Schema):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


class WithdrawalRequest(Schema):
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    bank_details: Optional[dict] = None

    @field_validator('bank_details')
    @classmethod
    def clean_bank_details(cls, value):
        return sanitize_dict(value)


# === Customers ===

class VehicleCreate(Schema):
    car_name: str = Field(min_length=1, max_length=100)
    car_model: Optional[str] = Field(default=None, max_length=100)
    car_year: Optional[int] = Field(default=None, ge=1900, le=2100)
    is_primary: bool = False

    @field_validator('car_name', 'car_model')
    @classmethod
    def clean_names(cls, value):
        return sanitize_string(value)


class ProfileUpdate(Schema):
    full_name: str = Field(min_length=1, max_length=255)
    email: str = Field(max_length=255, pattern=r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
    phone: str = Field(min_length=7, max_length=20)
    gender: str = Field(min_length=1, max_length=20)

    @field_validator('full_name', 'gender')
    @classmethod
    def clean_text(cls, value):
        return sanitize_string(value)


# === Parsing helpers ===

def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    field = '.'.join(str(part) for part in first.get('loc', ()))
    if first.get('type') == 'missing':
        return f'{field} is required'
    return f"{field}: {first.get('msg')}" if field else first.get('msg')


def validate(schema, data):
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise ApiError(validation_error(_describe(e)))


def parse_body(schema):
    """Validate the JSON body of the current request against ``schema``."""
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ApiError(validation_error('Request body must be a JSON object'))
    return validate(schema, data)


def parse_query(schema):
    return validate(schema, request.args.to_dict())
