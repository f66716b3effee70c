"""Availability auto-reply text for inbound WhatsApp messages."""

from __future__ import annotations

from uuid import UUID

AVAILABILITY_KEYWORDS = (
    "available",
    "availability",
    "when are you",
    "what times",
    "schedule",
    "calendar",
    "when can",
    "free",
    "open",
    "hours",
    "times",
    "book",
    "booking",
    "session",
    "class",
)

DEFAULT_REPLY_TEMPLATE = (
    "Hi! Thanks for your message about {coach_name}'s availability.\n\n"
    "📅 View our monthly schedule and book online:\n"
    "{booking_link}\n\n"
    "You can:\n"
    "• Continue as a guest and book a class or private 1-on-1 session\n"
    "• Become a member for easier booking and member benefits\n\n"
    'Reply with "BOOK" if you need help, or click the link above to see all available times! 🥊'
)

GENERIC_REPLY_TEMPLATE = (
    "Hi! Thanks for getting in touch with Fleetwood Boxing Gym.\n\n"
    "📅 View our monthly schedule and book online:\n"
    "{booking_link}\n\n"
    'Reply with "BOOK" if you need help, or click the link above to see all available times! 🥊'
)


def is_availability_question(text: str | None) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(keyword in lowered for keyword in AVAILABILITY_KEYWORDS)


def build_booking_link(base_url: str, coach_id: UUID | str | None = None) -> str:
    """Coach-specific booking page, or the full calendar when no coach is known."""
    base = base_url.rstrip("/")
    if coach_id is None:
        return f"{base}/book?view=calendar"
    return f"{base}/book?coach={coach_id}"


def render_auto_reply(
    booking_link: str,
    coach_name: str | None = None,
    custom_message: str | None = None,
) -> str:
    """Fill the coach's own template, or the default one.

    ``{coach_name}`` and ``{booking_link}`` are substituted literally; a custom
    message without ``{booking_link}`` gets the link on its own line.
    """
    if coach_name is None:
        return GENERIC_REPLY_TEMPLATE.replace("{booking_link}", booking_link)

    template = (custom_message or "").strip() or DEFAULT_REPLY_TEMPLATE
    message = template.replace("{coach_name}", coach_name)
    if "{booking_link}" in message:
        return message.replace("{booking_link}", booking_link)
    return f"{message}\n{booking_link}"


def render_booking_alert(payload: dict) -> str:
    """Message sent to a coach when one of their sessions is paid for."""
    title = payload.get("title") or "a session"
    participant = payload.get("participant_name") or "A client"
    lines = [f"🥊 New booking: {participant} booked {title}."]
    if payload.get("session_start"):
        lines.append(f"When: {payload['session_start']}")
    if payload.get("amount") and payload.get("currency"):
        lines.append(f"Paid: {payload['currency']} {payload['amount']}")
    return "\n".join(lines)
