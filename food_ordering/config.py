import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEV_SECRET = "dev-secret-change-me-before-deploying-anywhere"


@dataclass(frozen=True)
class Settings:
    """Process configuration, read once at startup and passed to components."""

    database_url: str = "sqlite:///./food_ordering.db"
    app_secret: str = DEV_SECRET
    token_ttl_days: int = 90
    otp_ttl_seconds: int = 600
    notification_service_url: str = ""
    upload_dir: Path = Path("./uploads")
    upload_failure_log: Optional[Path] = None
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_folder: str = "restro/images"
    upload_retries: int = 3
    upload_backoff_seconds: float = 1.0
    default_ready_time: int = 45
    admin_email: str = ""
    admin_password: str = ""

    @property
    def failure_log_path(self) -> Path:
        return self.upload_failure_log or self.upload_dir / "failed_uploads.log"

    @classmethod
    def from_env(cls, env_file: str = ".env") -> "Settings":
        # Values already present in the environment win over the .env file.
        load_dotenv(env_file)
        failure_log = os.getenv("UPLOAD_FAILURE_LOG")
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            app_secret=os.getenv("APP_SECRET", cls.app_secret),
            token_ttl_days=int(os.getenv("TOKEN_TTL_DAYS", cls.token_ttl_days)),
            otp_ttl_seconds=int(os.getenv("OTP_TTL_SECONDS", cls.otp_ttl_seconds)),
            notification_service_url=os.getenv("NOTIFICATION_SERVICE_URL", ""),
            upload_dir=Path(os.getenv("UPLOAD_DIR", str(cls.upload_dir))),
            upload_failure_log=Path(failure_log) if failure_log else None,
            cloudinary_cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME", ""),
            cloudinary_api_key=os.getenv("CLOUDINARY_API_KEY", ""),
            cloudinary_api_secret=os.getenv("CLOUDINARY_API_SECRET", ""),
            cloudinary_folder=os.getenv("CLOUDINARY_FOLDER", cls.cloudinary_folder),
            upload_retries=int(os.getenv("UPLOAD_RETRIES", cls.upload_retries)),
            upload_backoff_seconds=float(
                os.getenv("UPLOAD_BACKOFF_SECONDS", cls.upload_backoff_seconds)
            ),
            default_ready_time=int(os.getenv("DEFAULT_READY_TIME", cls.default_ready_time)),
            admin_email=os.getenv("ADMIN_EMAIL", ""),
            admin_password=os.getenv("ADMIN_PASSWORD", ""),
        )
