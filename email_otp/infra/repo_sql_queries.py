UPSERT_OTP_SQL = """
INSERT INTO otp_verifications (email, otp, created_at, attempts, verified)
VALUES (%(email)s, %(code)s, %(created_at)s, %(attempts)s, %(verified)s)
ON CONFLICT (email) DO UPDATE
SET
    otp = EXCLUDED.otp,
    created_at = EXCLUDED.created_at,
    attempts = EXCLUDED.attempts,
    verified = EXCLUDED.verified
"""

GET_LIVE_OTP_SQL = """
SELECT email, otp, created_at, attempts, verified
FROM otp_verifications
WHERE email = %s
  AND created_at >= %s
"""

UPDATE_OTP_SQL = """
UPDATE otp_verifications
SET
    attempts = %(attempts)s,
    verified = %(verified)s
WHERE
    email = %(email)s
    AND created_at = %(prev_created_at)s
    AND attempts = %(prev_attempts)s
    AND verified = %(prev_verified)s
    AND created_at >= %(cutoff)s
"""

DELETE_OTP_SQL = "DELETE FROM otp_verifications WHERE email = %s"

SWEEP_EXPIRED_SQL = """
DELETE FROM otp_verifications
WHERE created_at < %s
  AND verified = FALSE
"""
