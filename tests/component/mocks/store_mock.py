"""
Campaign Store Mocks

Stores that fail on read, for exercising degraded paths.
"""


class FailingCampaignRepository:
    """Campaign store whose list call always raises"""

    def __init__(self, error: Exception = None):
        self.error = error or ConnectionError("campaign store unavailable")
        self.calls = 0

    async def list_campaigns(self, *args, **kwargs):
        self.calls += 1
        raise self.error

    async def count_campaigns(self, *args, **kwargs):
        raise self.error

    async def get_campaign_by_public_id(self, public_id):
        raise self.error
