from campaign_store.schemas.records import (
    AccessToken,
    CampaignRecord,
    IntegrityReport,
    MemberRecord,
    SessionRecord,
    UserRecord,
)

__all__ = [
    "AccessToken",
    "CampaignRecord",
    "IntegrityReport",
    "MemberRecord",
    "SessionRecord",
    "UserRecord",
]
