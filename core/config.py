"""honest-qa configuration via Pydantic settings."""

from pydantic_settings import BaseSettings


class ConfigurationError(RuntimeError):
    """Raised when a provider cannot be built from the current settings."""


class Settings(BaseSettings):
    # OpenAI
    openai_api_key: str = ""
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 1500
    generation_timeout_seconds: float = 60.0

    # Google Custom Search
    google_search_api_key: str = ""
    google_search_engine_id: str = ""
    search_base_url: str = "https://www.googleapis.com/customsearch/v1"
    search_timeout_seconds: float = 10.0

    # Retrieval
    desired_results: int = 10
    trusted_ratio: float = 0.7
    trusted_date_restrict_days: int = 365

    # Synthesis
    max_prompt_sources: int = 8
    max_prior_turns: int = 5

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
