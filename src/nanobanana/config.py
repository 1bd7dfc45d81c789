from pydantic import AliasChoices, BaseModel, HttpUrl, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Dict, Literal, Optional

DEFAULT_MODEL = "gemini-2.5-flash-image"


class EngineConfig(BaseModel):
    kind: Literal["gemini", "openrouter"] = Field(
        "gemini", description="Which provider adapter serves this engine."
    )
    api_key: Optional[str] = Field(
        None, description="API key for the image generation engine."
    )
    base_url: Optional[HttpUrl] = Field(
        None, description="Base URL for the API (for OpenAI-compatible engines)."
    )
    model: str = Field(DEFAULT_MODEL, description="Model to use for this engine.")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="NANOBANANA__",
        env_nested_delimiter="__",
        extra="ignore",
    )

    output_dir: str = Field(
        "generated_images", description="Default directory to save generated images."
    )
    default_engine: str = Field(
        "gemini", description="Default engine to use if not specified in command."
    )
    engines: Dict[str, EngineConfig] = {"gemini": EngineConfig(kind="gemini")}
    gemini_api_key: Optional[str] = Field(
        None,
        validation_alias=AliasChoices(
            "NANOBANANA__GEMINI_API_KEY", "GEMINI_API_KEY", "API_KEY"
        ),
        description="Fallback key for gemini engines without their own api_key.",
    )
    product_name: str = Field(
        "nanobanana", description="Prefix used for downloaded image filenames."
    )
    host: str = "127.0.0.1"
    port: int = 5000
    log_level: str = "INFO"

    @model_validator(mode="after")
    def keep_default_gemini_engine(self) -> "Settings":
        # Engines declared through the environment replace the dict default wholesale.
        self.engines.setdefault("gemini", EngineConfig(kind="gemini"))
        return self

    def engine(self, name: Optional[str] = None) -> EngineConfig:
        """Resolve an engine by name, filling in the shared Gemini key."""
        engine_name = name or self.default_engine
        if engine_name not in self.engines:
            raise KeyError(
                f"Engine '{engine_name}' is not configured. "
                f"Available engines: {list(self.engines.keys())}"
            )
        config = self.engines[engine_name]
        if config.kind == "gemini" and not config.api_key and self.gemini_api_key:
            config = config.model_copy(update={"api_key": self.gemini_api_key})
        return config


def get_settings() -> Settings:
    return Settings()
