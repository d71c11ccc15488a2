"""
Scripts Package.

Operational scripts for the flow catalog.

Scripts:
- email_notification_harness: Send one test email through the configured SMTP server
"""
