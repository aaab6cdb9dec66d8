from ntumiwa.errors import ValidationError

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_BYTES = 72  # bcrypt ignores everything past this


def validate_username(username: str) -> str:
    """Validate and normalize a username.

    Requirements:
    - Not blank after stripping surrounding whitespace
    - No inner whitespace
    - At most 64 characters
    """
    username = username.strip()
    if not username:
        raise ValidationError("Username cannot be blank")
    if any(char.isspace() for char in username):
        raise ValidationError("Username cannot contain whitespace characters")
    if len(username) > 64:
        raise ValidationError("Username must be at most 64 characters long")
    return username


def validate_password(password: str) -> None:
    """Validate password meets requirements.

    Requirements:
    - Minimum length of 8 characters
    - At most 72 bytes once UTF-8 encoded
    - No whitespace characters

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")

    if any(char.isspace() for char in password):
        raise ValidationError("Password cannot contain whitespace characters")
