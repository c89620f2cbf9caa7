from sqlalchemy import Column, Integer, String, DateTime, Boolean
from app.db.base import Base

class Subscription(Base):
    """User plan, written by the billing webhook and read here for gating."""
    __tablename__ = "user_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, unique=True, index=True, nullable=False)

    plan_type = Column(String, default="free")  # free | premium_monthly | premium_yearly
    status = Column(String, default="inactive")
    current_period_end = Column(DateTime, nullable=True)
    cancel_at_period_end = Column(Boolean, default=False)

    stripe_customer_id = Column(String, nullable=True)
    stripe_subscription_id = Column(String, nullable=True)
