"""
Newsletter Module - Routes
============================
  POST /api/newsletter                              - Public subscribe
  GET  /api/admin/newsletter                        - Subscribers (admin)
  POST /api/admin/newsletter/{id}/toggle            - Activate / deactivate (admin)
  GET  /api/admin/newsletter/export                 - CSV of active subscribers (admin)
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_admin
from modules.newsletter.service import newsletter_service, serialize_subscriber

router = APIRouter(tags=["newsletter"])


class SubscribeRequest(BaseModel):
    email: EmailStr


@router.post("/api/newsletter", status_code=201)
async def subscribe(body: SubscribeRequest, db: Session = Depends(get_db)):
    newsletter_service.subscribe(db, body.email)
    db.commit()
    return {"success": True, "message": "Thanks for subscribing!"}


# ==========================================
# Admin
# ==========================================

@router.get("/api/admin/newsletter")
async def list_subscribers(db: Session = Depends(get_db), admin=Depends(require_admin)):
    subs = newsletter_service.list_subscribers(db)
    return {
        "subscribers": [serialize_subscriber(s) for s in subs],
        "active_count": sum(1 for s in subs if s.is_active),
    }


@router.get("/api/admin/newsletter/export")
async def export_subscribers(db: Session = Depends(get_db), admin=Depends(require_admin)):
    return Response(
        content=newsletter_service.export_csv(db),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="newsletter_subscribers.csv"'},
    )


@router.post("/api/admin/newsletter/{subscriber_id}/toggle")
async def toggle_subscriber(subscriber_id: int, db: Session = Depends(get_db), admin=Depends(require_admin)):
    sub = newsletter_service.toggle_active(db, subscriber_id)
    db.commit()
    return {"success": True, "is_active": sub.is_active}
