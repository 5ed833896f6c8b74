"""Smart Scaffolder configuration.

Centralised, typed configuration for the scaffold pipeline. All settings use
Pydantic v2 models so they can be validated at construction time and serialised
to/from JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


DEFAULT_IGNORE_DIRS: list[str] = [
    "node_modules",
    ".git",
    ".next",
    "dist",
    "build",
    "out",
    "coverage",
    "__tests__",
    "__mocks__",
    "test",
    "tests",
]


class AnalysisConfig(BaseModel):
    """Tuning knobs for project convention analysis."""

    cache_ttl_seconds: int = Field(
        default=3600, ge=0, description="How long an analysed project stays fresh"
    )
    sample_size: int = Field(
        default=20, ge=1, description="Maximum samples collected per naming category"
    )
    import_sample_size: int = Field(
        default=50, ge=1, description="Maximum import lines collected"
    )
    max_depth: int = Field(default=4, ge=1, description="Deepest directory level walked")
    max_files_read: int = Field(
        default=60, ge=1, description="Source files opened while sampling identifiers"
    )
    ignore_dirs: list[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE_DIRS))
    base_confidence: float = Field(default=0.85, ge=0.0, le=1.0)


class GenerationConfig(BaseModel):
    """Resource guards applied to rendered output."""

    max_files_per_scaffold: int = Field(
        default=50, ge=1, description="Abort a scaffold producing more files than this"
    )
    max_file_size_bytes: int = Field(
        default=1024 * 1024, ge=1, description="Drop generated files larger than this"
    )


class ScaffolderConfig(BaseModel):
    """Global Smart Scaffolder configuration.

    Instances are typically created once by ``ScaffoldPipeline`` or by the CLI
    entry point and then passed through the rest of the system.
    """

    workspace_root: Path = Field(
        default=Path("."), description="Directory holding one sub-directory per project"
    )
    min_confidence: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Parse confidence required to proceed"
    )
    timeout_seconds: float = Field(default=30.0, gt=0, description="Whole-pipeline timeout")
    history_max_age_seconds: int = Field(default=86400, ge=0)
    verbose: bool = Field(default=False)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Parent directories are created.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "ScaffolderConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "ScaffolderConfig":
        """Build a ``ScaffolderConfig`` from environment variables.

        Recognised variables (all optional):
            SCAFFOLD_WORKSPACE_ROOT, SCAFFOLD_MIN_CONFIDENCE,
            SCAFFOLD_TIMEOUT, SCAFFOLD_VERBOSE, SCAFFOLD_CACHE_TTL,
            SCAFFOLD_SAMPLE_SIZE, SCAFFOLD_MAX_DEPTH,
            SCAFFOLD_MAX_FILES, SCAFFOLD_MAX_FILE_SIZE.
        """
        analysis_kwargs: dict[str, Any] = {}
        if os.environ.get("SCAFFOLD_CACHE_TTL"):
            analysis_kwargs["cache_ttl_seconds"] = int(os.environ["SCAFFOLD_CACHE_TTL"])
        if os.environ.get("SCAFFOLD_SAMPLE_SIZE"):
            analysis_kwargs["sample_size"] = int(os.environ["SCAFFOLD_SAMPLE_SIZE"])
        if os.environ.get("SCAFFOLD_MAX_DEPTH"):
            analysis_kwargs["max_depth"] = int(os.environ["SCAFFOLD_MAX_DEPTH"])

        generation_kwargs: dict[str, Any] = {}
        if os.environ.get("SCAFFOLD_MAX_FILES"):
            generation_kwargs["max_files_per_scaffold"] = int(os.environ["SCAFFOLD_MAX_FILES"])
        if os.environ.get("SCAFFOLD_MAX_FILE_SIZE"):
            generation_kwargs["max_file_size_bytes"] = int(os.environ["SCAFFOLD_MAX_FILE_SIZE"])

        kwargs: dict[str, Any] = {}
        if os.environ.get("SCAFFOLD_MIN_CONFIDENCE"):
            kwargs["min_confidence"] = float(os.environ["SCAFFOLD_MIN_CONFIDENCE"])
        if os.environ.get("SCAFFOLD_TIMEOUT"):
            kwargs["timeout_seconds"] = float(os.environ["SCAFFOLD_TIMEOUT"])

        verbose = os.environ.get("SCAFFOLD_VERBOSE", "").strip().lower() in {"1", "true", "yes"}

        return cls(
            workspace_root=Path(os.environ.get("SCAFFOLD_WORKSPACE_ROOT", ".")),
            verbose=verbose,
            analysis=AnalysisConfig(**analysis_kwargs),
            generation=GenerationConfig(**generation_kwargs),
            **kwargs,
        )
