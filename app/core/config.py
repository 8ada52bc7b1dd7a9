import os
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
	# Accept a direct URL (supports either DATABASE_URL or database_url env vars)
	database_url: str | None = None

	# Individual parts; when DB_HOST is unset the local SQLite file is used instead
	DB_DRIVER: str = "postgresql+psycopg2"
	DB_HOST: str | None = None
	DB_USER: str = "postgres"
	DB_PASSWORD: str = ""
	DB_NAME: str = "backoffice"
	DB_PORT: int = 5432
	SQLITE_FALLBACK_URL: str = "sqlite:///./exports.db"

	SECRET_KEY: str = "secret"
	ALGORITHM: str = "HS256"
	ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

	# Observability / Telemetry flags
	ENABLE_REQUEST_LOGGING: bool = True
	ENABLE_OUTBOUND_LOGGING: bool = True
	LOG_LEVEL: str = "INFO"

	MINIO_ENDPOINT: str = os.getenv("MINIO_ENDPOINT", "localhost:9000")
	MINIO_PUBLIC_ENDPOINT: str = os.getenv("MINIO_PUBLIC_ENDPOINT", "localhost:9000")
	MINIO_ACCESS_KEY: str = os.getenv("MINIO_ACCESS_KEY", "minioadmin")
	MINIO_SECRET_KEY: str = os.getenv("MINIO_SECRET_KEY", "minioadmin")
	MINIO_BUCKET: str = os.getenv("MINIO_BUCKET", "exports")
	MINIO_SECURE: bool = os.getenv("MINIO_SECURE", "false").lower() == "true"
	STORAGE_PREFIX: str = ""
	STORAGE_PUBLIC_BASE_URL: str | None = None
	STORAGE_PRESIGN_TTL_SECONDS: int = 300

	# Export job engine
	EXPORTS_WORKER_ENABLED: bool = True
	EXPORTS_WORKER_INTERVAL_MS: int = 15000
	EXPORTS_WORKER_MAX_ATTEMPTS: int = 3
	EXPORTS_ATTACHMENT_TIMEOUT_SECONDS: float = 30.0
	EXPORTS_AUDIT_ACKNOWLEDGEMENT: str = "YES"

	# Prefer explicit database_url if provided; otherwise assemble from parts
	@property
	def DATABASE_URL(self) -> str:
		# 1) Value from settings (supports .env and OS env via BaseSettings)
		if self.database_url and self.database_url.strip() and self.database_url.strip() != "://:@:/":
			return self.database_url.strip()
		# 2) Raw OS env (e.g., uppercase on Windows), as a fallback
		explicit_url = os.getenv("DATABASE_URL")
		if explicit_url and explicit_url.strip() and explicit_url.strip() != "://:@:/":
			return explicit_url.strip()
		# 3) Assemble from parts
		if not self.DB_HOST:
			return self.SQLITE_FALLBACK_URL
		return f"{self.DB_DRIVER}://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

	@property
	def EXPORTS_WORKER_INTERVAL_SECONDS(self) -> float:
		return max(self.EXPORTS_WORKER_INTERVAL_MS, 1) / 1000.0

	# Pydantic v2 settings config
	model_config = SettingsConfigDict(
		env_file=".env",
		extra="ignore",  # tolerate unrelated env vars like database_url
		case_sensitive=False,  # accept lowercase keys on Windows and in .env
	)

settings = Settings()
