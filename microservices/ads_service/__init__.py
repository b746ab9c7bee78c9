"""
Ads Service

Advertising operations microservice providing:
- Campaign management (create, update, pause, resume)
- Derived performance metrics, compliance checks and scoring
- Time-driven and compliance-driven lifecycle transitions
- Ranked ad placements for feeds and search, with feed interleaving
- Trend insights, pacing and recommendations

Port: 8260
"""

__version__ = "1.0.0"
__service__ = "ads_service"
