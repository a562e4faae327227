"""Confirmation emails for contact-form submissions."""

import html
import logging
import smtplib
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

from inquiry_service.shared.contact.schemas import SubmissionOut


class SmtpTransport:
    """Sends mail through an SMTP relay with STARTTLS."""

    def __init__(self, host: str, port: int, user: str, password: str, from_address: str, from_name: str):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_address = from_address
        self.from_name = from_name

    @property
    def configured(self) -> bool:
        return bool(self.user) and bool(self.password)

    def send(self, to: str, subject: str, html_body: str, text_body: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((self.from_name, self.from_address))
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        with smtplib.SMTP(self.host, self.port, timeout=15) as server:
            server.starttls()  # Enable encryption
            server.login(self.user, self.password)
            server.send_message(msg)


def _format_event_date(submission: SubmissionOut) -> str:
    if submission.event_date is None:
        return ""
    d = submission.event_date
    return f"{d.strftime('%A, %B')} {d.day}, {d.year}"


def build_subject(submission: SubmissionOut, business_name: str) -> str:
    return f"Thank You for Contacting {business_name} - {submission.event_type.capitalize()} Event"


def build_text_body(submission: SubmissionOut, business_name: str, business_phone: str = "") -> str:
    lines = [
        f"Dear {submission.full_name},",
        "",
        f"Thank you for reaching out to {business_name}! Our team has received your inquiry "
        "and will contact you within 24 hours to discuss your event.",
        "",
        "Your event details:",
        f"  Event type: {submission.event_type.capitalize()}",
    ]
    if submission.event_date:
        lines.append(f"  Event date: {_format_event_date(submission)}")
    if submission.guest_count:
        lines.append(f"  Expected guests: {submission.guest_count}")
    if submission.phone:
        lines.append(f"  Phone: {submission.phone}")
    lines.append(f"  Email: {submission.email}")
    if submission.message:
        lines.extend(["", "Your message:", submission.message])
    lines.extend(["", "Best regards,", f"The {business_name} Team"])
    if business_phone:
        lines.append(f"Call us: {business_phone}")
    return "\n".join(lines) + "\n"


def build_html_body(submission: SubmissionOut, business_name: str, business_phone: str = "") -> str:
    esc = html.escape
    rows = [("Event Type", submission.event_type.capitalize())]
    if submission.event_date:
        rows.append(("Event Date", _format_event_date(submission)))
    if submission.guest_count:
        rows.append(("Expected Guests", submission.guest_count))
    if submission.phone:
        rows.append(("Phone", submission.phone))
    rows.append(("Email", submission.email))

    detail_rows = "\n".join(
        f"""            <tr>
                <td style="padding: 8px 0; color: #a3a3a3; font-size: 14px;">{esc(label)}:</td>
                <td style="padding: 8px 0; color: #fbbf24; font-size: 14px; font-weight: 600; text-align: right;">{esc(value)}</td>
            </tr>"""
        for label, value in rows
    )

    message_block = ""
    if submission.message:
        message_block = f"""
        <p style="margin: 20px 0 8px; color: #a3a3a3; font-size: 13px;">Your Message:</p>
        <p style="margin: 0; color: #e5e5e5; font-size: 14px; font-style: italic; background-color: #1a1a1a; padding: 15px; border-left: 3px solid #eab308;">
            "{esc(submission.message)}"
        </p>"""

    phone_block = ""
    if business_phone:
        phone_block = f"""
        <p style="text-align: center; margin: 30px 0;">
            <a href="tel:{esc(business_phone)}" style="display: inline-block; padding: 16px 40px; background: #eab308; color: #000000; text-decoration: none; border-radius: 8px; font-weight: 600;">
                Call Us: {esc(business_phone)}
            </a>
        </p>"""

    return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Thank You - {esc(business_name)}</title>
</head>
<body style="margin: 0; padding: 0; background-color: #000000; font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;">
    <div style="max-width: 600px; margin: 0 auto; background: #1a1a1a; border-radius: 16px; overflow: hidden;">
        <div style="background: linear-gradient(135deg, #ca8a04 0%, #eab308 50%, #fbbf24 100%); padding: 40px 30px; text-align: center;">
            <h1 style="margin: 0; color: #000000; font-size: 32px;">{esc(business_name)}</h1>
        </div>
        <div style="padding: 40px 30px;">
        <h2 style="margin: 0 0 20px; color: #eab308; font-size: 26px;">Thank You for Contacting Us!</h2>
        <p style="color: #e5e5e5; font-size: 16px;">Dear <strong style="color: #fbbf24;">{esc(submission.full_name)}</strong>,</p>
        <p style="color: #d1d1d1; font-size: 15px; line-height: 1.7;">
            Thank you for reaching out to <strong style="color: #eab308;">{esc(business_name)}</strong>!
            Our team has received your inquiry and will reach out within <strong>24 hours</strong> to discuss your vision.
        </p>
        <table role="presentation" width="100%" style="border: 2px solid #eab308; border-radius: 12px; padding: 25px; margin: 30px 0;">
{detail_rows}
        </table>{message_block}{phone_block}
        </div>
        <div style="background-color: #000000; padding: 30px; text-align: center;">
            <p style="margin: 0; color: #737373; font-size: 11px;">
                &copy; {datetime.now(timezone.utc).year} {esc(business_name)}. All rights reserved.
            </p>
        </div>
    </div>
</body>
</html>
""".strip()


class NotificationDispatcher:
    """
    Sends the confirmation email for a stored submission.

    notify() never raises. The submission is already committed when it runs,
    so a failure here is logged and reported as False, nothing more.
    """

    def __init__(self, transport, business_name: str, business_phone: str = ""):
        self.transport = transport
        self.business_name = business_name
        self.business_phone = business_phone

    def notify(self, submission: SubmissionOut) -> bool:
        if not getattr(self.transport, "configured", True):
            logging.error("SMTP credentials not configured")
            return False

        try:
            self.transport.send(
                submission.email,
                build_subject(submission, self.business_name),
                build_html_body(submission, self.business_name, self.business_phone),
                build_text_body(submission, self.business_name, self.business_phone),
            )
        except Exception as e:
            logging.error(f"[Email] Failed to send confirmation for submission {submission.id}: {str(e)}", exc_info=True)
            return False

        logging.info(f"[Email] Confirmation sent for submission {submission.id}")
        return True
