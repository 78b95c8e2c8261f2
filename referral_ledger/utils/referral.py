import re
import secrets
import string


REFERRAL_CODE_RE = re.compile(r"^[A-Z0-9]{6,16}$")
_ALPHABET = string.ascii_uppercase + string.digits


class RefCode:
    def _random_ref_code(self, size: int) -> str:
        return "".join(secrets.choice(_ALPHABET) for _ in range(size))

    def generate_ref_code(self, codes: set[str], size: int = 8) -> str:
        while True:
            code = self._random_ref_code(size)
            if code not in codes:
                return code


def normalize_referral_code(code: str | None) -> str | None:
    """Upper-case and strip a code; None if it cannot be a referral code."""
    if not code:
        return None
    c = code.strip().upper()
    return c if REFERRAL_CODE_RE.match(c) else None
