"""Configuration models describing hashpress settings."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hashpress.languages import canonical_language


class HashpressBaseModel(BaseModel):
    """Shared configuration for hashpress Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class LLMSettings(HashpressBaseModel):
    """LLM configuration options.

    Attributes:
        provider: Identifier for the language-model provider (LiteLLM prefix).
        model: Model name to target when issuing requests.
        api_base_url: Optional base URL for OpenAI-compatible gateways.
        api_key: Optional credential for hosted providers.
        temperature: Sampling temperature for generative calls.
        max_tokens: Maximum number of tokens in responses.
    """

    provider: str = "openai"
    model: str = "gpt-4o-mini"
    api_base_url: Optional[str] = None
    api_key: Optional[str] = None
    temperature: float = 0.0
    max_tokens: int = 8_000


class BuildOptions(HashpressBaseModel):
    """Options governing the build pipeline.

    Attributes:
        languages: Target language codes every document is translated into.
        state_dirname: Directory (relative to the source root) holding build state.
        link_scheme: Scheme used when rewriting intra-document links to hashes.
        concurrency: Maximum number of records processed concurrently per stage.
        prune_artifacts: Whether artifacts of evicted documents are deleted.
        template: Optional template override handed to the rendering layer.
    """

    languages: List[str] = Field(default_factory=list)
    state_dirname: str = ".hashpress"
    link_scheme: str = "hashpress"
    concurrency: int = Field(default=4, ge=1, le=64)
    prune_artifacts: bool = True
    template: Optional[str] = None

    @field_validator("languages")
    @classmethod
    def _normalize_languages(cls, value: List[str]) -> List[str]:
        seen: list[str] = []
        for raw in value:
            if not raw.strip():
                continue
            code = canonical_language(raw)
            if code not in seen:
                seen.append(code)
        return seen

    @field_validator("link_scheme")
    @classmethod
    def _validate_scheme(cls, value: str) -> str:
        value = value.strip().rstrip(":/")
        if not value or not value.replace("-", "").replace("+", "").isalnum():
            raise ValueError("link_scheme must be a non-empty alphanumeric URL scheme")
        return value


class ScanOptions(HashpressBaseModel):
    """Options governing source discovery.

    Attributes:
        extension: File extension of eligible source documents.
        follow_links: Whether relative links to untracked documents are followed.
    """

    extension: str = ".md"
    follow_links: bool = True


class EnrichmentOptions(HashpressBaseModel):
    """Options governing metadata extraction.

    Attributes:
        max_content_chars: Characters of a document sent to the extractor.
    """

    max_content_chars: int = Field(default=8_000, ge=500)


class LoggingSettings(HashpressBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "INFO"
    max_size_mb: int = 10
    backup_count: int = 5


class CLIOptions(HashpressBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class HashpressConfig(HashpressBaseModel):
    """Top-level configuration struct for hashpress.

    Attributes:
        llm: Language model settings.
        build: Build pipeline settings.
        scan: Source discovery settings.
        enrichment: Metadata extraction settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    llm: LLMSettings = Field(default_factory=LLMSettings)
    build: BuildOptions = Field(default_factory=BuildOptions)
    scan: ScanOptions = Field(default_factory=ScanOptions)
    enrichment: EnrichmentOptions = Field(default_factory=EnrichmentOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "HashpressBaseModel",
    "LLMSettings",
    "BuildOptions",
    "ScanOptions",
    "EnrichmentOptions",
    "LoggingSettings",
    "CLIOptions",
    "HashpressConfig",
]
