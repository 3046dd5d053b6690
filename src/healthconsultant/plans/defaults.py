"""Default plan catalogue seeded into an empty database.

interactions_limit is a monthly ceiling; None means unlimited.
"""

from typing import Any

FREE_PLAN_TITLE = "Free"

DEFAULT_PLANS: list[dict[str, Any]] = [
    {
        "title": FREE_PLAN_TITLE,
        "description": "Perfect for getting started",
        "features": [
            "3 AI consultations per month",
            "Basic health information",
            "Email support",
            "Standard response time",
        ],
        "monthly_price": 0,
        "yearly_price": 0,
        "is_active": True,
        "is_popular": False,
        "interactions_limit": 3,
    },
    {
        "title": "Basic",
        "description": "Great for regular users",
        "features": [
            "50 AI consultations per month",
            "Priority health information",
            "Image analysis (5 per month)",
            "Email & chat support",
            "Faster response time",
            "Health history tracking",
        ],
        "monthly_price": 9.99,
        "yearly_price": 99.99,
        "is_active": True,
        "is_popular": True,
        "interactions_limit": 50,
    },
    {
        "title": "Premium",
        "description": "For healthcare professionals",
        "features": [
            "Unlimited AI consultations",
            "Advanced health analysis",
            "Unlimited image analysis",
            "Priority support",
            "Fastest response time",
            "Advanced health tracking",
            "Custom health reports",
            "API access",
        ],
        "monthly_price": 29.99,
        "yearly_price": 299.99,
        "is_active": True,
        "is_popular": False,
        "interactions_limit": None,
    },
]
