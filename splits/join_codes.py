"""
Join codes: short, human-enterable session identifiers.

The alphabet leaves out O, 0, 1 and I so codes survive being read aloud or
typed from a phone screen.
"""

import secrets

JOIN_CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
JOIN_CODE_LENGTH = 6


def generate_join_code(length=JOIN_CODE_LENGTH):
    return ''.join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))


def normalize_join_code(code):
    """Uppercase and trim a typed code; None becomes an empty string"""
    return (code or '').strip().upper()


def is_valid_join_code(code):
    return (
        len(code) == JOIN_CODE_LENGTH
        and all(ch in JOIN_CODE_ALPHABET for ch in code)
    )
