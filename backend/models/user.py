from enum import Enum
from typing import Annotated, Optional

from pydantic import AfterValidator, EmailStr, Field

from models.base import RequestModel
from utils.hash import password_fits


class UserRole(str, Enum):
    USER = "USER"
    SELLER = "SELLER"
    ADMIN = "ADMIN"


SELLER_PROFILE_FIELDS = ("business_desc", "business_type", "verification_doc_url")


def _check_password_length(value: str) -> str:
    if not password_fits(value):
        raise ValueError("Password too long (max 72 bytes)")
    return value


# emails are unique case-insensitively
Email = Annotated[EmailStr, AfterValidator(str.lower)]
Password = Annotated[str, Field(min_length=1), AfterValidator(_check_password_length)]


class SignupRequest(RequestModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: Email
    password: Password
    address: str = Field(..., min_length=1)
    country_code: Optional[str] = Field(None, alias="countryCode", max_length=8)
    phone_number: Optional[str] = Field(None, alias="phoneNumber", max_length=32)


class LoginRequest(RequestModel):
    email: Email
    password: str = Field(..., min_length=1)


class UpdateProfileRequest(RequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    email: Optional[Email] = None
    country_code: Optional[str] = Field(None, alias="countryCode", max_length=8)
    phone_number: Optional[str] = Field(None, alias="phoneNumber", max_length=32)
    address: Optional[str] = Field(None, min_length=1)

    # applied only for sellers
    business_desc: Optional[str] = Field(None, alias="businessDesc", min_length=1)
    business_type: Optional[str] = Field(None, alias="businessType", min_length=1)
    verification_doc_url: Optional[str] = Field(None, alias="verificationDocUrl", min_length=1)


class ChangePasswordRequest(RequestModel):
    current_password: str = Field(..., alias="currentPassword", min_length=1)
    new_password: Password = Field(..., alias="newPassword")


class VerifySellerRequest(RequestModel):
    business_desc: str = Field(..., alias="businessDesc", min_length=1)
    business_type: str = Field(..., alias="businessType", min_length=1)
    verification_doc_url: str = Field(..., alias="verificationDocUrl", min_length=1)
