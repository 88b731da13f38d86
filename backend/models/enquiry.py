from pydantic import Field

from config.constants import MAX_ENQUIRY_LENGTH
from models.base import RequestModel


class EnquiryCreate(RequestModel):
    product_id: str = Field(..., alias="productId", min_length=1)
    message: str = Field(..., min_length=1, max_length=MAX_ENQUIRY_LENGTH)


class ChatLeadCreate(RequestModel):
    company_name: str = Field(..., alias="companyName", min_length=1, max_length=200)
    user_name: str = Field(..., alias="userName", min_length=1, max_length=120)
    phone_number: str = Field(..., alias="phoneNumber", min_length=4, max_length=32)
