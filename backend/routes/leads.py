import logging
from datetime import datetime

from fastapi import APIRouter, status

from database import get_db
from models.enquiry import ChatLeadCreate
from utils.serializers import serialize_chat_lead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat-leads", tags=["Leads"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def store_lead(data: ChatLeadCreate):
    db = get_db()

    lead = {
        "company_name": data.company_name,
        "user_name": data.user_name,
        "phone_number": data.phone_number,
        "created_at": datetime.utcnow(),
    }
    result = await db.chat_leads.insert_one(lead)
    lead["_id"] = result.inserted_id

    logger.info("CHAT_LEAD_STORED lead_id=%s", lead["_id"])
    return {
        "success": True,
        "message": "Lead stored successfully",
        "data": serialize_chat_lead(lead),
    }
