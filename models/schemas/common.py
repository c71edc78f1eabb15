import re

from marshmallow import ValidationError, validate

USERNAME_MIN, USERNAME_MAX = 3, 50
PASSWORD_MIN, PASSWORD_MAX = 8, 100
LOGIN_PASSWORD_MIN = 6

# at least one lowercase, one uppercase, one digit and one other character
_STRONG_PASSWORD = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^a-zA-Z\d]).{8,}$")

username_length = validate.Length(
    min=USERNAME_MIN,
    max=USERNAME_MAX,
    error=f"Username must be between {USERNAME_MIN} and {USERNAME_MAX} characters.",
)

password_length = validate.Length(
    min=PASSWORD_MIN,
    max=PASSWORD_MAX,
    error=f"Password must be between {PASSWORD_MIN} and {PASSWORD_MAX} characters.",
)


def validate_strong_password(value: str) -> None:
    if not _STRONG_PASSWORD.match(value or ""):
        raise ValidationError(
            "Password must contain an uppercase letter, a lowercase letter, "
            "a digit and a special character."
        )


def normalize_username(value):
    return value.strip() if isinstance(value, str) else value
