import json
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load env values for components that read os.environ directly (e.g., the LLM client).
_package_root = Path(__file__).resolve().parent
_project_root = _package_root.parent
load_dotenv(_project_root / ".env", override=False)
load_dotenv(_package_root / ".env", override=True)


def _coerce_json(value: str):
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"

    DATABASE_URL: str = "sqlite:///./creative_strategist.db"
    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30

    CLERK_JWT_ISSUER: str = ""
    CLERK_JWKS_URL: str = ""
    CLERK_AUDIENCE: list[str] = ["http://localhost:5173", "backend"]

    BACKEND_CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    OPENAI_API_KEY: str | None = None
    ANTHROPIC_API_KEY: str | None = None
    GEMINI_API_KEY: str | None = None
    LLM_DEFAULT_MODEL: str = "gpt-4o"
    LLM_REQUEST_TIMEOUT: int = 120
    LLM_REQUEST_RETRIES: int = 2

    META_APP_ID: str | None = None
    META_APP_SECRET: str | None = None
    META_GRAPH_API_VERSION: str = "v19.0"
    META_GRAPH_API_BASE_URL: str = "https://graph.facebook.com"
    META_OAUTH_DIALOG_URL: str = "https://www.facebook.com"
    META_OAUTH_SCOPES: list[str] = ["ads_management", "business_management", "pages_show_list", "email"]

    # Public base URL of the OAuth broker (e.g. https://api.example.com/api/oauth-broker).
    # When unset the broker callback is derived from the incoming request.
    OAUTH_BROKER_URL: str | None = None
    OAUTH_BROKER_SECRET: str | None = None
    OAUTH_LINK_SESSION_TTL_SECONDS: int = 15 * 60

    N8N_BASE_URL: str = "https://n8n.example.com/webhook"
    N8N_API_KEY: str | None = None
    N8N_TIMEOUT_SECONDS: float = 60.0

    SCRAPE_CREATORS_API_KEY: str | None = None
    SCRAPE_CREATORS_BASE_URL: str = "https://api.scrapecreators.com/v1"
    SCRAPE_CREATORS_TIMEOUT_SECONDS: float = 30.0

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("CLERK_AUDIENCE", "META_OAUTH_SCOPES", mode="before")
    @classmethod
    def split_list(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    model_config = SettingsConfigDict(env_file=".env", env_json_loads=_coerce_json, extra="ignore")


settings = Settings()
