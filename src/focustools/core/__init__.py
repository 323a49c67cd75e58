"""Core configuration components."""

from focustools.core.config import Config, TimerSettings, WebConfig, get_config

__all__ = ["Config", "TimerSettings", "WebConfig", "get_config"]
