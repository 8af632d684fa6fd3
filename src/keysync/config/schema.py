"""Configuration schema for keysync using nested Pydantic models."""

from pathlib import Path
from typing import Annotated, Literal, Self

from pydantic import BaseModel, Field, field_validator, model_validator


class PathsConfig(BaseModel):
    """File system locations used by the engine."""

    source_dir: Path = Field(
        default=Path("src"),
        description="Root directory scanned for translation call sites",
    )
    messages_dir: Path = Field(
        default=Path("src/messages"),
        description="Directory holding one sub-directory of JSON documents per language",
    )
    hash_file: Path = Field(
        default=Path("i18n/hashes.json"),
        description="Snapshot file used for change detection between runs",
    )

    def resolved(self, base_dir: Path) -> "PathsConfig":
        """Return a copy with relative paths anchored at ``base_dir``."""
        return PathsConfig(
            source_dir=base_dir / self.source_dir,
            messages_dir=base_dir / self.messages_dir,
            hash_file=base_dir / self.hash_file,
        )


class LanguageConfig(BaseModel):
    """A supported language."""

    value: str = Field(
        ...,
        description="Language code, also the name of its messages sub-directory",
        pattern=r"^[a-z]{2,3}(-[A-Za-z0-9]{2,8})*$",
    )
    label: str = Field(
        default="",
        description="Human readable name passed to the translation service",
    )
    default: bool = Field(
        default=False,
        description="Whether this is the source language",
    )

    @property
    def display_label(self) -> str:
        return self.label or self.value


class ScanConfig(BaseModel):
    """Source scanning options."""

    extensions: list[str] = Field(
        default_factory=lambda: ["py"],
        description="File extensions to scan, without the leading dot",
        min_length=1,
    )
    ignore_dirs: list[str] = Field(
        default_factory=lambda: [
            "__pycache__",
            ".git",
            ".venv",
            "venv",
            "node_modules",
            "messages",
            "dist",
            "build",
        ],
        description="Directory names skipped while walking the source tree",
    )
    default_namespace: str = Field(
        default="translation",
        description="Namespace used when no other context applies",
        min_length=1,
    )
    translate_function: str = Field(
        default="t",
        description="Name of the translation function and of the annotated parameter",
    )
    hook_function: str = Field(
        default="use_translation",
        description="Hook whose first argument sets the namespace of a function",
    )
    type_hint: str = Field(
        default="TFunction",
        description="Generic annotation whose argument names the namespace",
    )
    component: str = Field(
        default="Trans",
        description="Component called with i18n_key= and defaults= attributes",
    )

    @field_validator("extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        """Strip leading dots so '.py' and 'py' are equivalent."""
        return [ext.lstrip(".") for ext in v]


class BehaviorConfig(BaseModel):
    """Synchronization policies."""

    sync_translations_strictly: bool = Field(
        default=True,
        description="Drop nested keys that disappeared from source when merging",
    )
    clean_unused_keys: bool = Field(
        default=True,
        description="Allow the clean command to remove keys no longer in source",
    )
    remove_empty_files: bool = Field(
        default=True,
        description="Delete documents left empty by the clean command",
    )
    fill_policy: Literal["skeleton", "default"] = Field(
        default="skeleton",
        description="Seed new keys in other languages with the skeleton or the source text",
    )


class TranslationServiceConfig(BaseModel):
    """External batch translation service."""

    api_url: str = Field(
        default="https://api.anthropic.com/v1/messages",
        description="Messages endpoint of the translation model",
        pattern=r"^https?://.*",
    )
    model: str = Field(
        default="claude-haiku-4-5-20251001",
        description="Model identifier sent with each request",
        min_length=1,
    )
    anthropic_version: str = Field(
        default="2023-06-01",
        description="API version header value",
    )
    api_key_env: str = Field(
        default="ANTHROPIC_API_KEY",
        description="Environment variable holding the API key",
        min_length=1,
    )
    max_tokens: Annotated[int, Field(ge=1, le=64000)] = Field(
        default=4096,
        description="Maximum tokens generated per batch",
    )
    batch_size: Annotated[int, Field(ge=1, le=1000)] = Field(
        default=50,
        description="Number of strings sent per request",
    )
    timeout: float | None = Field(
        default=None,
        description="Request timeout in seconds, or None to wait indefinitely",
    )


class KeySyncConfig(BaseModel):
    """Root configuration."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    languages: list[LanguageConfig] = Field(
        default_factory=lambda: [
            LanguageConfig(value="en", label="English", default=True),
            LanguageConfig(value="tr", label="Türkçe"),
            LanguageConfig(value="fr", label="Français"),
        ],
        min_length=1,
    )
    scan: ScanConfig = Field(default_factory=ScanConfig)
    behavior: BehaviorConfig = Field(default_factory=BehaviorConfig)
    translation: TranslationServiceConfig = Field(
        default_factory=TranslationServiceConfig
    )

    @model_validator(mode="after")
    def validate_languages(self) -> Self:
        """Require unique language codes and exactly one source language."""
        codes = [language.value for language in self.languages]
        if len(codes) != len(set(codes)):
            raise ValueError("Language codes must be unique")

        defaults = [language.value for language in self.languages if language.default]
        if len(defaults) != 1:
            raise ValueError(
                f"Exactly one language must be marked as default, got {len(defaults)}"
            )
        return self

    @property
    def default_language(self) -> str:
        return next(language.value for language in self.languages if language.default)

    @property
    def language_codes(self) -> list[str]:
        return [language.value for language in self.languages]

    @property
    def target_languages(self) -> list[LanguageConfig]:
        """All languages except the source language, in configured order."""
        return [language for language in self.languages if not language.default]

    def get_language(self, code: str) -> LanguageConfig | None:
        return next((language for language in self.languages if language.value == code), None)
