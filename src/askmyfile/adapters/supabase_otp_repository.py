"""Supabase-backed one-time code repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from askmyfile.domain.otp import OtpRecord
from askmyfile.services.otp import OtpRepository


@dataclass
class SupabaseOtpRepository(OtpRepository):
    """Supabase implementation for one-time codes, one row per email."""

    client: Client

    def save_otp(self, email: str, code: str, expires_at: datetime) -> OtpRecord:
        """Store the code for an email, replacing any previous one."""
        response = (
            self.client.table("otps")
            .upsert(
                {
                    "email": email,
                    "code": code,
                    "expires_at": expires_at.isoformat(),
                    "failed_attempts": 0,
                },
                on_conflict="email",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to store one-time code")
        return OtpRecord(email=email, code=code, expires_at=expires_at)

    def get_otp(self, email: str) -> OtpRecord | None:
        """Return the current code for an email, if present."""
        response = (
            self.client.table("otps")
            .select("email, code, expires_at, failed_attempts")
            .eq("email", email)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return OtpRecord(
            email=row["email"],
            code=row["code"],
            expires_at=datetime.fromisoformat(row["expires_at"]),
            failed_attempts=int(row.get("failed_attempts") or 0),
        )

    def record_failed_attempt(self, email: str, failed_attempts: int) -> None:
        """Store how many wrong codes have been tried for an email."""
        self.client.table("otps").update({"failed_attempts": failed_attempts}).eq(
            "email", email
        ).execute()

    def delete_otp(self, email: str) -> None:
        """Delete the code for an email."""
        self.client.table("otps").delete().eq("email", email).execute()
