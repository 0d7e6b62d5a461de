from .broker import AppEvent, AppEventType, EventLog, event_log, record_event

__all__ = ["AppEvent", "AppEventType", "EventLog", "event_log", "record_event"]
