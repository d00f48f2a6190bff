"""
Signup handling for the landing page form.

The form validates here before anything reaches the store. Duplicate emails
are acknowledged the same way as new signups.
"""
import logging
import re
from typing import NamedTuple, Optional

from models import WaitlistSignup
from waitlist import WaitlistStore

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

ADDED_MESSAGE = "You're on the list."
ALREADY_ADDED_MESSAGE = "You're already on the list."
RETRY_MESSAGE = "We couldn't save your signup. Please try again."


class SignupValidationError(ValueError):
    """Submitted form fields are not acceptable"""


class SignupOutcome(NamedTuple):
    added: bool
    message: str


def _optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def validate_signup(
    name: Optional[str],
    email: Optional[str],
    company: Optional[str] = None,
    role: Optional[str] = None,
) -> WaitlistSignup:
    """
    Check raw form input and build the fields for the store.

    Name and email are trimmed. Blank company/role are treated as not given.

    Raises:
        SignupValidationError: If the name is empty or the email is malformed
    """
    name = (name or "").strip()
    email = (email or "").strip()

    if not name:
        raise SignupValidationError("Please enter your name.")
    if not EMAIL_PATTERN.match(email):
        raise SignupValidationError("Please enter a valid email address.")

    return WaitlistSignup(
        name=name,
        email=email,
        company=_optional(company),
        role=_optional(role),
    )


def submit_signup(
    store: WaitlistStore,
    name: Optional[str],
    email: Optional[str],
    company: Optional[str] = None,
    role: Optional[str] = None,
) -> SignupOutcome:
    """
    Validate and record a signup.

    Raises:
        SignupValidationError: If the input is rejected
        StorageWriteError: If the signup could not be saved
    """
    signup = validate_signup(name, email, company, role)
    result = store.add_if_absent(signup)
    if not result.inserted:
        logger.info(f"Repeat signup for existing entry {result.entry.id}")
        return SignupOutcome(added=False, message=ALREADY_ADDED_MESSAGE)
    return SignupOutcome(added=True, message=ADDED_MESSAGE)
