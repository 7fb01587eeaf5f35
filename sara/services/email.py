import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from sara.core.config import settings

logger = logging.getLogger(__name__)

# Failures a caller can log and move past once its own work is committed
DELIVERY_ERRORS = (ValueError, aiosmtplib.SMTPException, OSError)


def _frontend_link(path: str) -> str | None:
    if not settings.frontend_url:
        return None
    return f"{settings.frontend_url.rstrip('/')}/{path.lstrip('/')}"


async def send_email(to: str, subject: str, text: str, html: str) -> None:
    """
    Send a plain text + HTML email through the configured SMTP server.

    Raises:
        ValueError: If SMTP is not configured.
        aiosmtplib.SMTPException: If the server rejects or drops the message.
        OSError: If the server cannot be reached.
    """
    if not settings.smtp_configured:
        logger.warning("SMTP not configured - cannot send '%s' to %s", subject, to)
        raise ValueError("SMTP is not configured. Please configure SMTP settings in .env file.")

    message = MIMEMultipart("alternative")
    message["Subject"] = subject
    message["From"] = settings.smtp_from_email
    message["To"] = to
    message.attach(MIMEText(text, "plain"))
    message.attach(MIMEText(html, "html"))

    send_kwargs = {
        "hostname": settings.smtp_host,
        "port": settings.smtp_port,
        "username": settings.smtp_user,
        "password": settings.smtp_password,
    }

    # Handle TLS based on smtp_use_tls configuration
    if settings.smtp_use_tls:
        # Port 465 uses direct TLS, everything else STARTTLS
        if settings.smtp_port == 465:
            send_kwargs["use_tls"] = True
        else:
            send_kwargs["start_tls"] = True

    await aiosmtplib.send(message, **send_kwargs)
    logger.info("Sent '%s' to %s", subject, to)


async def send_password_reset_email(email: str, reset_token: str) -> None:
    """
    Send password reset email to user.

    Args:
        email: User's email address
        reset_token: JWT token for password reset
    """
    minutes = settings.password_reset_token_expire_minutes
    reset_link = _frontend_link(f"reset-password?token={reset_token}")

    if reset_link:
        text = f"""
You requested a password reset for your S.A.R.A account.

Please click the following link to reset your password:
{reset_link}

This link will expire in {minutes} minutes.

If you did not request this, please ignore this email.
        """
        html = f"""
<html>
  <body>
    <p>You requested a password reset for your S.A.R.A account.</p>
    <p>Please click the following link to reset your password:</p>
    <p><a href="{reset_link}">{reset_link}</a></p>
    <p>This link will expire in {minutes} minutes.</p>
    <p>If you did not request this, please ignore this email.</p>
  </body>
</html>
        """
    else:
        # FRONTEND_URL not configured - just include the token
        text = f"""
You requested a password reset for your S.A.R.A account.

Your password reset token is:
{reset_token}

This token will expire in {minutes} minutes.

If you did not request this, please ignore this email.
        """
        html = f"""
<html>
  <body>
    <p>You requested a password reset for your S.A.R.A account.</p>
    <p>Your password reset token is:</p>
    <p><code>{reset_token}</code></p>
    <p>This token will expire in {minutes} minutes.</p>
    <p>If you did not request this, please ignore this email.</p>
  </body>
</html>
        """

    await send_email(email, "Password Reset Request", text, html)


async def send_welcome_email(email: str, name: str, role: str) -> None:
    """Welcome a newly registered landlord or tenant."""
    text = f"""
Hello {name},

Welcome to S.A.R.A - Sistema de Administración Responsable de Arriendos.

Your {role} account has been created. You can now sign in and start managing your rentals.

The S.A.R.A team
    """
    html = f"""
<html>
  <body>
    <h1>Hello {name},</h1>
    <p>Welcome to S.A.R.A - Sistema de Administración Responsable de Arriendos.</p>
    <p>Your <strong>{role}</strong> account has been created. You can now sign in and start managing your rentals.</p>
    <p>The S.A.R.A team</p>
  </body>
</html>
    """
    await send_email(email, "Welcome to S.A.R.A!", text, html)


async def send_contract_invitation_email(
    tenant_email: str,
    tenant_name: str,
    landlord_name: str,
    property_address: str,
    signature_token: str,
) -> None:
    """Invite the tenant to review and sign a new draft contract."""
    sign_link = _frontend_link(f"sign/{signature_token}")
    if sign_link:
        link_text = f"Review and sign the contract here:\n{sign_link}"
        link_html = f'<p><a href="{sign_link}">Review and sign the contract</a></p>'
    else:
        link_text = f"Your contract signature code is:\n{signature_token}"
        link_html = f"<p>Your contract signature code is: <code>{signature_token}</code></p>"

    text = f"""
Hello {tenant_name},

{landlord_name} has invited you to review and sign a lease contract for the property at {property_address}.

1. Sign up or sign in to S.A.R.A using {tenant_email}.
2. Review the contract terms.
3. Sign the contract. It becomes active once {landlord_name} countersigns.

{link_text}

If you have questions, please contact {landlord_name} directly.
    """
    html = f"""
<html>
  <body>
    <h1>You have a new lease contract pending</h1>
    <p>Hello {tenant_name},</p>
    <p><strong>{landlord_name}</strong> has invited you to review and sign a lease contract for the property at <strong>{property_address}</strong>.</p>
    <ol>
      <li>Sign up or sign in to S.A.R.A using <strong>{tenant_email}</strong>.</li>
      <li>Review the contract terms.</li>
      <li>Sign the contract. It becomes active once {landlord_name} countersigns.</li>
    </ol>
    {link_html}
    <p>If you have questions, please contact {landlord_name} directly.</p>
  </body>
</html>
    """
    await send_email(tenant_email, f"New lease contract from {landlord_name}", text, html)
