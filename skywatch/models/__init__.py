from .sent_alert import SentAlert

__all__ = [
    "SentAlert",
]
