import secrets

from src.domain.interfaces.repositories import IAccountRepository

# Excludes look-alike characters: 0, O, I, L, 1
REFERRAL_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"


def generate_referral_code(length: int = 8) -> str:
    """Generate a readable referral code, e.g. ``K7QW3MZP``."""
    return "".join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(length))


async def allocate_referral_code(
    accounts: IAccountRepository, length: int = 8, attempts: int = 10
) -> str:
    """Returns a code no account currently holds.

    The check is advisory; the unique constraint on ``accounts.referral_code``
    still rejects a code taken concurrently.
    """
    code = generate_referral_code(length)
    for _ in range(attempts):
        if not await accounts.referral_code_taken(code):
            break
        code = generate_referral_code(length)
    return code
