"""
Settings Store
==============
The two user preferences the poller reads: an optional organization filter
and the poll interval.

    organization   — org slug such as "gh/acme"; blank means "all my orgs"
    poll_interval  — seconds between cycles, 1–3600, default 10
"""
import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cistern.core.constants import DEFAULT_POLL_INTERVAL, MAX_POLL_INTERVAL, MIN_POLL_INTERVAL

logger = logging.getLogger(__name__)


class PollSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    organization: Optional[str] = None
    poll_interval: float = Field(
        default=DEFAULT_POLL_INTERVAL, ge=MIN_POLL_INTERVAL, le=MAX_POLL_INTERVAL
    )

    @field_validator("organization", mode="before")
    @classmethod
    def blank_organization_is_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class SettingsStore:
    """Current settings, replaced wholesale on every update."""

    def __init__(self, settings: Optional[PollSettings] = None) -> None:
        self._settings = settings or PollSettings()

    @property
    def settings(self) -> PollSettings:
        return self._settings

    @property
    def organization(self) -> Optional[str]:
        return self._settings.organization

    @property
    def poll_interval(self) -> float:
        return self._settings.poll_interval

    def update(self, settings: PollSettings) -> PollSettings:
        self._settings = settings
        logger.info(
            "Settings updated: organization=%s poll_interval=%ss",
            settings.organization or "<all>", settings.poll_interval,
        )
        return settings
