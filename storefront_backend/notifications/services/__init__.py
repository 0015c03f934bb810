from .dispatch import notify, notify_staff

__all__ = [
    "notify",
    "notify_staff",
]
