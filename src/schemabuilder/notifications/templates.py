"""Email templates."""

from dataclasses import asdict, dataclass
from typing import Any, Dict

_LAYOUT = """\
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <h2 style="color: #2563eb;">{heading}</h2>
    {content}
    <hr style="margin: 30px 0; border: none; border-top: 1px solid #eee;">
    <p style="color: #666; font-size: 12px;">Schema Builder</p>
  </div>
</body>
</html>
"""

_CODE_BLOCK = (
    '<div style="background: #f3f4f6; padding: 20px; text-align: center; margin: 20px 0;">'
    '<span style="font-size: 32px; font-weight: bold; letter-spacing: 6px;">{code}</span>'
    "</div>"
)


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EmailMessage":
        return cls(to=data["to"], subject=data["subject"], html=data["html"])


def _greeting(first_name: str) -> str:
    return f"Hi {first_name}," if first_name else "Hi,"


def verification_email(to: str, code: str, ttl_minutes: int) -> EmailMessage:
    content = (
        "<p>Thank you for signing up. Use the code below to verify your email address:</p>"
        + _CODE_BLOCK.format(code=code)
        + f"<p>This code expires in {ttl_minutes} minutes.</p>"
        "<p>If you did not create an account, you can ignore this email.</p>"
    )
    return EmailMessage(
        to=to,
        subject="Verify Your Email - Schema Builder",
        html=_LAYOUT.format(heading="Verify your email", content=content),
    )


def password_reset_email(to: str, code: str, ttl_minutes: int) -> EmailMessage:
    content = (
        "<p>We received a request to reset your password. Use this code to continue:</p>"
        + _CODE_BLOCK.format(code=code)
        + f"<p>This code expires in {ttl_minutes} minutes.</p>"
        "<p>If you did not request a password reset, no action is needed.</p>"
    )
    return EmailMessage(
        to=to,
        subject="Password Reset - Schema Builder",
        html=_LAYOUT.format(heading="Reset your password", content=content),
    )


def welcome_email(to: str, first_name: str, frontend_url: str) -> EmailMessage:
    content = (
        f"<p>{_greeting(first_name)}</p>"
        "<p>Your account is ready. Start designing database schemas visually, "
        "or ask the assistant to draft one for you.</p>"
        f'<p><a href="{frontend_url}" style="color: #2563eb;">Open Schema Builder</a></p>'
    )
    return EmailMessage(
        to=to,
        subject="Welcome to Schema Builder!",
        html=_LAYOUT.format(heading="Welcome to Schema Builder", content=content),
    )


def account_linked_email(to: str, first_name: str) -> EmailMessage:
    content = (
        f"<p>{_greeting(first_name)}</p>"
        "<p>A federated sign-in identity was just linked to your account. "
        "You can now sign in with either your password or your identity provider.</p>"
        "<p>If this was not you, reset your password and contact support.</p>"
    )
    return EmailMessage(
        to=to,
        subject="Account Linked - Schema Builder",
        html=_LAYOUT.format(heading="Sign-in method linked", content=content),
    )
