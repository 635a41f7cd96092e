from sqlalchemy import Column, String, JSON

from .base import TimestampedModel


class GlobalSetting(TimestampedModel):
    __tablename__ = "global_settings"

    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=True)
