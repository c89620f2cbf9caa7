"""
Pydantic schemas for question usage endpoints.
"""
from typing import Optional
from pydantic import BaseModel, Field


class UsageResponse(BaseModel):
    """Response schema for GET /me/usage."""
    plan: str = Field(..., description="free, premium_monthly or premium_yearly")
    month_key: str = Field(..., description="Current month in YYYY-MM format")
    used: int = Field(..., description="Questions generated this month")
    limit: Optional[int] = Field(None, description="Monthly limit (None for unlimited)")
    remaining: Optional[int] = Field(None, description="Remaining quota (None for unlimited)")
    unlimited: bool = Field(..., description="Whether the plan has unlimited questions")
    is_premium: bool = Field(..., description="Whether premium features are unlocked")

    class Config:
        json_schema_extra = {
            "example": {
                "plan": "free",
                "month_key": "2026-03",
                "used": 3,
                "limit": 5,
                "remaining": 2,
                "unlimited": False,
                "is_premium": False
            }
        }


class QuestionUsageRequest(BaseModel):
    """Schema for recording generated interview questions."""
    count: int = Field(1, ge=1, le=50, description="Number of questions generated")


class QuotaExceededResponse(BaseModel):
    """Error response schema for quota exceeded."""
    error: str = Field("quota_exceeded", description="Error code")
    feature: str = Field("question", description="Metered feature")
    plan: str = Field(..., description="User's current plan")
    limit: int = Field(..., description="Monthly question limit")
    used: int = Field(..., description="Questions generated this month")
    remaining: int = Field(..., description="Remaining quota")
    message: str = Field(..., description="Human-readable error message")
    upgrade_url: str = Field(..., description="Pricing page")
