from datetime import datetime

# role transitions and account lifecycle
SELLER_VERIFICATION_SUBMITTED = "SELLER_VERIFICATION_SUBMITTED"
SELLER_DOCUMENT_UPLOADED = "SELLER_DOCUMENT_UPLOADED"
SELLER_DOCUMENT_APPROVED = "SELLER_DOCUMENT_APPROVED"
SELLER_REVOKED = "SELLER_REVOKED"
ACCOUNT_DELETED = "ACCOUNT_DELETED"


async def log_audit(
    db,
    actor_id,
    actor_role: str,
    action: str,
    metadata: dict | None = None,
    session=None,
):
    await db.audit_logs.insert_one({
        "actor_id": str(actor_id) if actor_id else None,
        "actor_role": actor_role,
        "action": action,
        "metadata": metadata or {},
        "created_at": datetime.utcnow()
    }, session=session)
