"""
Admin Dashboard Service
=========================
Aggregated statistics for the admin console.
"""

from typing import Dict, Any, List

from sqlalchemy.orm import Session
from sqlalchemy import func as sa_func

from modules.catalog.models import Product, ModerationStatus
from modules.catalog.service import serialize_product
from modules.order.service import order_service
from modules.user.models import User, Profile


class DashboardService:

    def get_overview_stats(self, db: Session) -> Dict[str, Any]:
        """Key marketplace counts."""
        return {
            "total_users": db.query(sa_func.count(User.id)).scalar() or 0,
            "total_sellers": db.query(sa_func.count(Profile.id)).filter(Profile.is_seller == True).scalar() or 0,
            "total_products": db.query(sa_func.count(Product.id)).scalar() or 0,
            "pending_seller_requests": (
                db.query(sa_func.count(Profile.id)).filter(Profile.seller_request_pending == True).scalar() or 0
            ),
            "pending_products": (
                db.query(sa_func.count(Product.id))
                .filter(Product.moderation_status == ModerationStatus.PENDING.value)
                .scalar() or 0
            ),
        }

    def get_top_products(self, db: Session, limit: int = 10) -> List[Dict[str, Any]]:
        """Most downloaded products."""
        products = (
            db.query(Product)
            .order_by(Product.download_count.desc(), Product.id.desc())
            .limit(limit)
            .all()
        )
        return [serialize_product(p) for p in products]

    def get_analytics(self, db: Session, days: int = 30) -> Dict[str, Any]:
        revenue = order_service.get_revenue_stats(db)
        return {
            **revenue,
            "daily": order_service.get_daily_revenue(db, days=days),
            "top_products": self.get_top_products(db),
        }


dashboard_service = DashboardService()
