"""
Push notification delivery and audit pipeline.

This app provides:
- PushNotificationService: public operations (initialize, show_*, triggers)
- NotificationDispatcher: lifecycle and routing of inbound messages
- TokenRegistry: device token association with users
- AuditLogWriter / NotificationAuditRecord: append-only step audit trail
- Celery task handle_background_message for app-opening messages
- REST API for token registration, test/triggered notifications and the audit log

Usage:
    from notifications.services import build_notification_service

    service = build_notification_service()
    service.initialize()
    service.show_comment("7", "alice", "nice shot", target_user_id="42")
"""
