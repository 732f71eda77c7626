# ec2_pricing/services/notifier.py

"""Email notifications for triggered price alerts."""

import logging
import smtplib
from datetime import datetime, timedelta, timezone
from email.message import EmailMessage

from ec2_pricing.config.settings import Settings, get_region_name
from ec2_pricing.models.price_alert import PriceAlert
from ec2_pricing.storage.alert_db import AlertDB

logger = logging.getLogger("ec2_pricing.notifier")

_SMTP_TIMEOUT = 30  # seconds


class SmtpMailer:
    """Sends HTML email through an authenticated SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        sender: str,
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender

    @classmethod
    def from_settings(cls) -> "SmtpMailer | None":
        """Build a mailer from Settings, or None when SMTP is unset."""
        if not Settings.smtp_configured():
            return None
        return cls(
            host=str(Settings.SMTP_HOST),
            port=Settings.SMTP_PORT,
            user=str(Settings.SMTP_USER),
            password=str(Settings.SMTP_PASS),
            sender=Settings.EMAIL_FROM,
        )

    def send(self, to: str, subject: str, html: str) -> None:
        """Send one message.  SMTP errors propagate to the caller."""
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(
            "This message requires an HTML-capable mail client."
        )
        message.add_alternative(html, subtype="html")

        # Port 465 speaks TLS from the first byte
        if self.port == 465:
            with smtplib.SMTP_SSL(
                self.host, self.port, timeout=_SMTP_TIMEOUT,
            ) as smtp:
                smtp.login(self.user, self.password)
                smtp.send_message(message)
        else:
            with smtplib.SMTP(
                self.host, self.port, timeout=_SMTP_TIMEOUT,
            ) as smtp:
                smtp.starttls()
                smtp.login(self.user, self.password)
                smtp.send_message(message)


def build_alert_email(
    alert: PriceAlert, current_price: float,
) -> tuple[str, str]:
    """Return the (subject, html body) for a triggered alert."""
    subject = (
        f"AWS Price Alert: {alert.instance_type} price is now "
        f"${current_price:.4f}"
    )
    html = (
        "<h2>AWS EC2 Price Alert</h2>\n"
        "<p>Good news! The price for your watched instance has dropped "
        "below your threshold.</p>\n"
        "<ul>\n"
        f"  <li><strong>Instance Type:</strong> {alert.instance_type}</li>\n"
        f"  <li><strong>Region:</strong> {alert.region} "
        f"({get_region_name(alert.region)})</li>\n"
        f"  <li><strong>OS:</strong> {alert.os}</li>\n"
        f"  <li><strong>Price Type:</strong> {alert.price_type}</li>\n"
        f"  <li><strong>Current Price:</strong> ${current_price:.4f} "
        "per hour</li>\n"
        f"  <li><strong>Your Threshold:</strong> ${alert.threshold:.4f} "
        "per hour</li>\n"
        "</ul>\n"
        f"<p>This is notification #{alert.notification_count + 1} "
        "for this alert.</p>\n"
    )
    return subject, html


class AlertNotifier:
    """Emails alert owners, at most once per quiet period per alert."""

    def __init__(
        self,
        alert_db: AlertDB,
        mailer: SmtpMailer | None,
        quiet_period_hours: float | None = None,
    ) -> None:
        self._alert_db = alert_db
        self._mailer = mailer
        hours = (
            Settings.ALERT_QUIET_PERIOD_HOURS
            if quiet_period_hours is None
            else quiet_period_hours
        )
        self.quiet_period = timedelta(hours=hours)

    def _in_quiet_period(
        self, alert: PriceAlert, now: datetime,
    ) -> bool:
        if alert.last_notified is None:
            return False
        return now - alert.last_notified < self.quiet_period

    def check_alerts(
        self,
        instance_type: str,
        region: str,
        os_name: str,
        price_type: str,
        current_price: float,
        now: datetime | None = None,
    ) -> int:
        """Notify every alert triggered by ``current_price``.

        Returns the number of emails sent.
        """
        alerts = self._alert_db.find_triggered(
            instance_type, region, os_name, price_type, current_price,
        )
        if not alerts:
            return 0

        logger.info(
            "Found %d alerts to trigger for %s in %s",
            len(alerts),
            instance_type,
            region,
        )
        if self._mailer is None:
            logger.info(
                "Email configuration not found. "
                "Skipping alert notifications."
            )
            return 0

        moment = now or datetime.now(timezone.utc)
        sent = 0
        for alert in alerts:
            if self._in_quiet_period(alert, moment):
                logger.debug(
                    "Alert %d notified at %s, still quiet",
                    alert.id,
                    alert.last_notified,
                )
                continue

            subject, html = build_alert_email(alert, current_price)
            try:
                self._mailer.send(alert.email, subject, html)
            except (smtplib.SMTPException, OSError) as exc:
                logger.error(
                    "Error sending price alert %d to %s: %s",
                    alert.id,
                    alert.email,
                    exc,
                    exc_info=True,
                )
                continue

            self._alert_db.mark_notified(alert.id, moment)
            sent += 1
            logger.info("Sent price alert email to %s", alert.email)

        return sent
