from __future__ import annotations

from html import escape


VERIFICATION_SUBJECT = "Email Verification Code"


def format_verification_email(code: str, expiry_minutes: int) -> str:
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>Email Verification</h2>
  <p>Your verification code is:</p>
  <h1 style="font-size: 32px; letter-spacing: 8px; text-align: center; padding: 20px; background: #f5f5f5; border-radius: 4px;">
    {escape(code)}
  </h1>
  <p>This code will expire in {expiry_minutes} minutes.</p>
  <p>If you didn't request this code, please ignore this email.</p>
</div>
""".strip()
