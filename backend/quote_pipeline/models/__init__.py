from .base import TimestampedModel
from .quote import Quote
from .global_setting import GlobalSetting

__all__ = ["TimestampedModel", "Quote", "GlobalSetting"]
