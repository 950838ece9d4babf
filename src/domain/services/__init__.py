"""Domain Services.

Authentication Domain Services:
- User Authentication: registration, login and password reset requests
- Token Management: session and password-reset JWT lifecycle

Referral Domain Services:
- Referral codes: generation and allocation
- Attribution: validating a code and recording the referral edge
- Queries: cached referral list and statistics
"""
