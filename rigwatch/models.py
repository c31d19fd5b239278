"""Pydantic request models for the REST API.

Wire field names are camelCase; attributes are snake_case.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False)


class RegisterRequest(CamelModel):
    user_id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class LoginRequest(CamelModel):
    user_id: str
    api_key: str = ""


class RigCreateRequest(CamelModel):
    name: str
    model: str
    cryptocurrency: str
    hash_rate: float
    hash_rate_unit: str
    power_consumption: float
    is_active: bool = True


class RigUpdateRequest(CamelModel):
    name: Optional[str] = None
    model: Optional[str] = None
    cryptocurrency: Optional[str] = None
    hash_rate: Optional[float] = None
    hash_rate_unit: Optional[str] = None
    power_consumption: Optional[float] = None
    is_active: Optional[bool] = None
    daily_earnings: Optional[float] = None


class BalanceSetRequest(CamelModel):
    cryptocurrency: str
    amount: float


class ExchangeConnectionRequest(CamelModel):
    exchange: str
    is_connected: Optional[bool] = None
    api_key_id: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None


class ProfitabilityRequest(CamelModel):
    cryptocurrency: Optional[str] = None
    hash_rate: Optional[float] = None
    hash_rate_unit: Optional[str] = None
    power_consumption: Optional[float] = None
    electricity_cost: Optional[float] = None


class PaymentCreateRequest(CamelModel):
    network: str
    amount: float
    currency: str
    # Accepted for compatibility, always replaced by the system address
    to_address: Optional[str] = None
    from_address: Optional[str] = None
    transaction_hash: Optional[str] = None
    status: Optional[str] = None
    purpose: Optional[str] = None


class PaymentStatusRequest(CamelModel):
    status: Optional[str] = None
    transaction_hash: Optional[str] = None
