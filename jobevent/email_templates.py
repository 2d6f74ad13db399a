"""
MJML Email Templates
Transactional emails for accounts, reviews, reminders and subscriptions
"""

from html import escape
from typing import Optional

from .config import CLIENT_URL

# Brand colors - Indigo/Slate
THEME = {
    "primary": "#4f46e5",
    "primary_light": "#e0e7ff",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#16a34a",
    "warning": "#f59e0b",
}

BRAND_NAME = "Job Event"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML wrapper shared by every email"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="0 0 24px 0">
          <mj-column>
            <mj-button href="{cta_url}" background-color="{THEME['primary']}" color="#ffffff"
              font-weight="600" border-radius="8px" padding="16px 36px" font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 40px 8px 40px">
          <mj-column>
            <mj-text font-size="20px" font-weight="700" color="{THEME['primary']}" padding="0">
              {BRAND_NAME}
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="24px 0 0 0" />
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="16px 40px 40px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="24px 20px">
          <mj-column>
            <mj-text align="center" font-size="12px" color="#94a3b8" padding="0">
              You're receiving this because you have an account with {BRAND_NAME}.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def otp_verification_template(otp: str, expire_minutes: int) -> str:
    """Email verification OTP"""
    content = f"""
    <mj-text>
      Use the code below to verify your account.
    </mj-text>

    <mj-text align="center" font-size="36px" font-weight="700" letter-spacing="8px"
      color="{THEME['primary']}" padding="24px 0">
      {otp}
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      This code is valid for {expire_minutes} minutes. If you didn't request it, you can ignore this email.
    </mj-text>
    """

    return get_base_template(
        title="Verify Your Account",
        preview_text=f"Your verification code is {otp}",
        content_sections=content,
    )


def btc_review_received_template(event_title: str, rating: int, comment: Optional[str]) -> str:
    """A collaborator reviewed the organizer"""
    content = f"""
    <mj-text>
      A collaborator has reviewed your event <strong>{escape(event_title)}</strong>.
    </mj-text>

    <mj-text font-size="28px" font-weight="700" color="{THEME['warning']}" padding="12px 0">
      {rating}/5
    </mj-text>

    <mj-text color="{THEME['text_muted']}">
      {escape(comment or "No comment")}
    </mj-text>
    """

    return get_base_template(
        title="New Review Received",
        preview_text=f"You received a review for {event_title}",
        content_sections=content,
        cta_url=f"{CLIENT_URL}/dashboard/reviews",
        cta_label="View Reviews",
    )


def ctv_review_received_template(
    event_title: str, skill: int, attitude: int, comment: Optional[str]
) -> str:
    """The organizer reviewed a collaborator"""
    content = f"""
    <mj-text>
      The organizer of <strong>{escape(event_title)}</strong> has reviewed your performance.
    </mj-text>

    <mj-text padding="12px 0">
      Skill: <strong>{skill}/5</strong> &nbsp;•&nbsp; Attitude: <strong>{attitude}/5</strong>
    </mj-text>

    <mj-text color="{THEME['text_muted']}">
      {escape(comment or "No comment")}
    </mj-text>
    """

    return get_base_template(
        title="New Review from Organizer",
        preview_text=f"You received a review for {event_title}",
        content_sections=content,
        cta_url=f"{CLIENT_URL}/dashboard/my-jobs",
        cta_label="View Details",
    )


def organizer_event_reminder_template(event_title: str) -> str:
    content = f"""
    <mj-text>
      Your event <strong>{escape(event_title)}</strong> starts in 24 hours. Please get ready.
    </mj-text>
    """

    return get_base_template(
        title="Upcoming Event Reminder",
        preview_text=f"{event_title} starts tomorrow",
        content_sections=content,
    )


def collaborator_event_reminder_template(event_title: str, start_time: str, location: str) -> str:
    content = f"""
    <mj-text>
      This is a reminder that <strong>{escape(event_title)}</strong> starts in 24 hours.
    </mj-text>

    <mj-text padding="0 0 0 20px">
      • <strong>Time:</strong> {start_time}<br/>
      • <strong>Location:</strong> {escape(location)}
    </mj-text>

    <mj-text>
      Please arrive on time.
    </mj-text>
    """

    return get_base_template(
        title="Event Reminder",
        preview_text=f"{event_title} starts tomorrow",
        content_sections=content,
    )


def premium_activated_template(expires_at: str) -> str:
    content = f"""
    <mj-text>
      Your Premium subscription is now active.
    </mj-text>

    <mj-text padding="0 0 0 20px">
      • More event posts every month<br/>
      • Urgent posts highlighted at the top of listings<br/>
      • Bulk approve and reject applications
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Valid until {expires_at}.
    </mj-text>
    """

    return get_base_template(
        title="Premium Activated! 🎉",
        preview_text="Your Premium subscription is now active",
        content_sections=content,
        cta_url=f"{CLIENT_URL}/dashboard",
        cta_label="Go to Dashboard",
    )
