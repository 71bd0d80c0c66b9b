import re

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# Stored phone format accepted by the user record
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]{10,15}$")

_EMAIL_IN_TEXT = re.compile(r"[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}")
_PHONE_IN_TEXT = re.compile(r"\+?\(?\d[\d\s\-().]{8,18}\d")
_NAME_LINE = re.compile(r"^[A-Za-z][A-Za-z.'\-]*(?:\s+[A-Za-z][A-Za-z.'\-]*){1,3}$")
_HEADER_WORDS = {"resume", "curriculum", "vitae", "cv", "profile", "summary", "contact", "experience", "education"}

FIELD_ORDER: tuple[str, ...] = ("name", "email", "phone")
FIELD_PROMPTS: dict[str, str] = {
    "name": "What's your full name?",
    "email": "What's your email address?",
    "phone": "What's your phone number?",
}


def phone_digits(phone: str) -> str:
    return re.sub(r"\D", "", phone)


def is_valid_name(name: str | None) -> bool:
    if not name or not name.strip():
        return False
    return "not found" not in name.lower() and len(name.strip()) >= 2


def is_valid_email(email: str | None) -> bool:
    if not email or "not found" in email.lower():
        return False
    return bool(EMAIL_PATTERN.match(email.strip()))


def is_valid_phone(phone: str | None) -> bool:
    if not phone or "not found" in str(phone).lower():
        return False
    text = str(phone).strip()
    return bool(PHONE_PATTERN.match(text)) and 10 <= len(phone_digits(text)) <= 15


VALIDATORS = {"name": is_valid_name, "email": is_valid_email, "phone": is_valid_phone}


def missing_fields(fields: dict[str, str | None]) -> list[str]:
    """Fields that are absent or invalid, in asking order."""
    return [field for field in FIELD_ORDER if not VALIDATORS[field](fields.get(field))]


def extract_fields(text: str) -> dict[str, str | None]:
    """Best-effort scan of resume text for name, email and phone."""
    email_match = _EMAIL_IN_TEXT.search(text or "")
    phone = None
    for match in _PHONE_IN_TEXT.finditer(text or ""):
        if 10 <= len(phone_digits(match.group(0))) <= 15:
            phone = match.group(0).strip()
            break

    name = None
    for line in (text or "").splitlines():
        candidate = line.strip()
        if not candidate:
            continue
        if _NAME_LINE.match(candidate) and not (_HEADER_WORDS & {word.lower() for word in candidate.split()}):
            name = candidate
        break

    return {
        "name": name,
        "email": email_match.group(0).lower() if email_match else None,
        "phone": phone,
    }
