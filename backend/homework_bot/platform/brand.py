"""Centralized brand configuration for user-facing copy."""

BRAND_NAME = "Hacking Talents"
BRAND_DOMAIN = "hacking-talents.de"
BRAND_APP_DESCRIPTION = "Homework bot for the hacking talents recruiting pipeline"

# Appended to every signature built from names.
SIGNATURE_SUFFIX = "von den hacking talents"
DEFAULT_SIGNATURE = "Deine Hacking Talents"


def brand_email_from() -> str:
    return f"{BRAND_NAME} <noreply@{BRAND_DOMAIN}>"
