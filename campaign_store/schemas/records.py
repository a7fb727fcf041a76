"""Immutable record copies returned to store callers."""

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)


class UserRecord(_Record):
    """User row."""
    id: int
    username: str
    email: str
    last_synced: int | None = None


class SessionRecord(_Record):
    """UserSession row."""
    id: str
    user_id: int
    access_token: str = Field(repr=False)
    dc: str


class AccessToken(_Record):
    """Credentials needed to call the Mailchimp API for a user."""
    access_token: str = Field(repr=False)
    dc: str


class CampaignRecord(_Record):
    """Campaign row."""
    id: str
    title: str
    member_list_id: str
    user_id: int


class MemberRecord(_Record):
    """Member row (the internal row id is not part of the record)."""
    email_id: str
    full_name: str
    campaign_id: str


class IntegrityReport(_Record):
    """Result of an orphan scan."""
    orphans: dict[str, int] = Field(default_factory=dict)
    row_counts: dict[str, int] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.orphans
