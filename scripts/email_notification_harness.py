#!/usr/bin/env python3
"""
Email Notification Harness - send one test email.

Resolves the configured emailer (SMTP_* / EMAIL_* settings,
see .env) and sends a fixed test message to a fixed
recipient. A malformed recipient address is not caught.

Usage:
    python -m scripts.email_notification_harness
    email-notification-harness
"""

import logging

from dotenv import load_dotenv

from notifications import get_emailer


TEST_SUBJECT = "test"
TEST_BODY = "this is a body"
TEST_RECIPIENTS = ["flow-catalog-test@example.com"]


def main() -> None:
    load_dotenv()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    emailer = get_emailer()

    emailer.send_email(TEST_SUBJECT, TEST_BODY, TEST_RECIPIENTS)


if __name__ == "__main__":
    main()
