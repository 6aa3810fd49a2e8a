"""
Newsletter Module - Service Layer
===================================
Public subscription and admin list management.
"""

import csv
import io
import logging
from typing import List

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import desc

from common.exceptions import DuplicateError, NotFoundError
from modules.newsletter.models import NewsletterSubscriber

logger = logging.getLogger("digitalhub.newsletter")

ALREADY_SUBSCRIBED = "This email is already on our mailing list!"


def serialize_subscriber(sub: NewsletterSubscriber) -> dict:
    return {
        "id": sub.id,
        "email": sub.email,
        "is_active": sub.is_active,
        "subscribed_at": sub.subscribed_at.isoformat() if sub.subscribed_at else None,
    }


class NewsletterService:

    def subscribe(self, db: Session, email: str) -> NewsletterSubscriber:
        email = email.strip().lower()
        if db.query(NewsletterSubscriber.id).filter(NewsletterSubscriber.email == email).first():
            raise DuplicateError(ALREADY_SUBSCRIBED)

        sub = NewsletterSubscriber(email=email)
        db.add(sub)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            raise DuplicateError(ALREADY_SUBSCRIBED)
        logger.info(f"Newsletter subscription #{sub.id}")
        return sub

    def list_subscribers(self, db: Session) -> List[NewsletterSubscriber]:
        return (
            db.query(NewsletterSubscriber)
            .order_by(desc(NewsletterSubscriber.subscribed_at), desc(NewsletterSubscriber.id))
            .all()
        )

    def toggle_active(self, db: Session, subscriber_id: int) -> NewsletterSubscriber:
        sub = db.query(NewsletterSubscriber).filter(NewsletterSubscriber.id == subscriber_id).first()
        if not sub:
            raise NotFoundError("Subscriber not found")
        sub.is_active = not sub.is_active
        db.flush()
        return sub

    def export_csv(self, db: Session) -> str:
        """Active subscribers as CSV (email, subscribed_at)."""
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(["email", "subscribed_at"])
        for sub in self.list_subscribers(db):
            if sub.is_active:
                writer.writerow([sub.email, sub.subscribed_at.isoformat() if sub.subscribed_at else ""])
        return buf.getvalue()


newsletter_service = NewsletterService()
