from campusnet.db.database import get_session_maker
from campusnet.services.notifications import NotificationEmitter

def get_notifier() -> NotificationEmitter:
    """Notification emitter writing through its own sessions"""
    return NotificationEmitter(get_session_maker())
