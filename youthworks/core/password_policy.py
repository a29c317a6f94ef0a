"""
Password strength policy used at registration and by the password check endpoint.
"""

import re
import secrets
import string
from dataclasses import dataclass, field
from typing import List

MIN_LENGTH = 8
MAX_LENGTH = 128
SPECIAL_CHARS = '!@#$%^&*(),.?":{}|<>'

COMMON_PASSWORDS = {
    "password", "123456", "123456789", "qwerty", "abc123", "password123",
    "admin", "letmein", "welcome", "1234567890", "password1", "iloveyou",
    "princess", "rockyou", "1234567", "12345678", "sunshine", "andrew",
    "jordan23", "superman", "rainbow", "master", "computer", "monkey",
}

KEYBOARD_SEQUENCES = (
    "qwerty", "asdfgh", "zxcvbn", "qwertyuiop", "asdfghjkl", "zxcvbnm",
)


@dataclass
class PasswordCheck:
    is_valid: bool
    strength: str
    score: int
    errors: List[str] = field(default_factory=list)


def has_sequential_pattern(password: str) -> bool:
    """Three consecutive code points going up or down, or a keyboard run."""
    for i in range(len(password) - 2):
        a, b, c = (ord(ch) for ch in password[i:i + 3])
        if b == a + 1 and c == b + 1:
            return True
        if b == a - 1 and c == b - 1:
            return True

    lowered = password.lower()
    return any(seq in lowered for seq in KEYBOARD_SEQUENCES)


def has_repeated_chars(password: str) -> bool:
    for i in range(len(password) - 2):
        if password[i] == password[i + 1] == password[i + 2]:
            return True
    return False


def strength_label(score: int) -> str:
    if score <= 2:
        return "very-weak"
    if score <= 3:
        return "weak"
    if score <= 5:
        return "fair"
    if score <= 6:
        return "good"
    return "strong"


def validate_password(password: str) -> PasswordCheck:
    errors = []
    score = 0
    password = password or ""

    if len(password) < MIN_LENGTH:
        errors.append(f"Password must be at least {MIN_LENGTH} characters long")
    else:
        score += 1

    if len(password) > MAX_LENGTH:
        errors.append(f"Password must be at most {MAX_LENGTH} characters long")

    if password.lower() in COMMON_PASSWORDS:
        errors.append("Password is too common")
    else:
        score += 1

    checks = [
        (re.search(r"[A-Z]", password), "Password must contain an uppercase letter"),
        (re.search(r"[a-z]", password), "Password must contain a lowercase letter"),
        (re.search(r"[0-9]", password), "Password must contain a number"),
        (any(ch in SPECIAL_CHARS for ch in password),
         f"Password must contain a special character ({SPECIAL_CHARS})"),
    ]
    for passed, message in checks:
        if passed:
            score += 1
        else:
            errors.append(message)

    if has_sequential_pattern(password):
        errors.append('Password must not contain sequences such as "123" or "abc"')
        score = max(0, score - 1)
    else:
        score += 1

    if has_repeated_chars(password):
        errors.append("Password must not repeat the same character more than twice in a row")
        score = max(0, score - 1)
    else:
        score += 1

    return PasswordCheck(
        is_valid=not errors,
        strength=strength_label(score),
        score=score,
        errors=errors,
    )


def generate_secure_password(length: int = 16) -> str:
    """Random password with at least one character from every class."""
    length = max(length, 4)
    pools = [string.ascii_lowercase, string.ascii_uppercase, string.digits, SPECIAL_CHARS]
    alphabet = "".join(pools)

    chars = [secrets.choice(pool) for pool in pools]
    chars += [secrets.choice(alphabet) for _ in range(length - len(chars))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)
