"""Configuration models for PagesHeaders.

This module declares the headers configuration and the CSP auto-hash options,
and provides loading and saving of the ``pagesheaders.json`` config file.
Options are resolved once into immutable pydantic models.
"""

import json
import math
import os
from typing import Dict, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from rich.console import Console

from .logging_config import ErrorCodes, get_logger

logger = get_logger(__name__)
console = Console()

DEFAULT_CONFIG_PATH = "pagesheaders.json"
DEFAULT_MAX_HEADER_LINE_LENGTH = 2000

HeadersMapping = Dict[str, Union[str, Dict[str, str]]]


class CspOptions(BaseModel):
    """Options for CSP auto-hash patching.

    Field names are snake_case; the camelCase spelling used in config files
    (``autoHashes``, ``hashStyleElements``...) is accepted as an alias.

    Attributes:
        auto_hashes (bool): Enable CSP patching with hashes of inline content.
        mode (str): ``global`` unions hashes of every page into each CSP header,
            ``route`` attributes hashes to the route that produced them.
        hash_style_elements (bool): Hash ``<style>`` elements into ``style-src``.
        hash_style_attributes (bool): Hash ``style=""`` attributes into ``style-src-attr``.
        hash_inline_scripts (bool): Hash inline ``<script>`` elements into ``script-src``.
        strip_unsafe_inline (bool): Drop ``'unsafe-inline'`` from patched directives.
        max_header_line_length (int): Maximum length of a rendered header line.
        overflow (str): ``error`` fails the build on overflow, ``warn`` logs and continues.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    auto_hashes: bool = False
    mode: Literal["global", "route"] = "global"
    hash_style_elements: bool = True
    hash_style_attributes: bool = True
    hash_inline_scripts: bool = False
    strip_unsafe_inline: bool = True
    max_header_line_length: int = DEFAULT_MAX_HEADER_LINE_LENGTH
    overflow: Literal["warn", "error"] = "error"

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value):
        return "route" if value in ("route", "per-route") else "global"

    @field_validator("max_header_line_length", mode="before")
    @classmethod
    def _normalize_max_header_line_length(cls, value):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return DEFAULT_MAX_HEADER_LINE_LENGTH
        if not math.isfinite(value) or value <= 0:
            return DEFAULT_MAX_HEADER_LINE_LENGTH
        return math.floor(value)

    @field_validator("overflow", mode="before")
    @classmethod
    def _normalize_overflow(cls, value):
        return "warn" if value == "warn" else "error"

    @property
    def has_enabled_hash_category(self) -> bool:
        return (
            self.hash_style_elements
            or self.hash_style_attributes
            or self.hash_inline_scripts
        )


class IntegrationOptions(BaseModel):
    """Options of the build integration.

    Attributes:
        workers (bool): Normalize a ``*`` route to ``/*`` for Workers deployments.
        csp (CspOptions): CSP auto-hash options.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    workers: bool = False
    csp: CspOptions = Field(default_factory=CspOptions)


class PagesHeadersConfig(IntegrationOptions):
    """Full ``pagesheaders.json`` file: integration options plus the headers.

    ``headers`` is either flat (header name to value, applied to ``/*``) or
    nested (route to a mapping of header name to value).
    """

    headers: Optional[HeadersMapping] = None

    @model_validator(mode="after")
    def _check_headers_shape(self):
        if self.headers:
            flat = [isinstance(value, str) for value in self.headers.values()]
            if any(flat) and not all(flat):
                raise ValueError(
                    "headers must be either flat (header name to value) or nested "
                    "(route to header mapping), not a mix of both"
                )
        return self


def load_config(config_path: Optional[str] = None) -> Optional[PagesHeadersConfig]:
    """Load the PagesHeaders configuration from a JSON file.

    If no path is provided, looks for ``pagesheaders.json`` in the current
    directory. Returns None and logs appropriate messages if the file is not
    found or is invalid.

    Args:
        config_path (Optional[str], optional): Path to the config file. Defaults to None.

    Returns:
        Optional[PagesHeadersConfig]: A validated config if successful, None otherwise.
    """
    path = config_path or DEFAULT_CONFIG_PATH

    if not os.path.exists(path):
        logger.info("No config file found", file_path=path, operation="load_config")
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        config = PagesHeadersConfig.model_validate(data)
        logger.info(
            "Loaded config successfully",
            file_path=path,
            operation="load_config",
            route_count=len(config.headers or {}),
            auto_hashes=config.csp.auto_hashes,
        )
        return config
    except json.JSONDecodeError as e:
        logger.error(
            "Invalid JSON in config file",
            file_path=path,
            operation="load_config",
            error_code=ErrorCodes.INVALID_JSON,
            error=str(e),
            exc_info=True,
        )
        console.print(f"[red]Error: Invalid JSON in {path}: {e}[/red]")
        return None
    except ValidationError as e:
        logger.error(
            "Invalid headers config format",
            file_path=path,
            operation="load_config",
            error_code=ErrorCodes.VALIDATION_ERROR,
            error=str(e),
            exc_info=True,
        )
        console.print(f"[red]Error: Invalid headers config in {path}: {e}[/red]")
        return None
    except Exception as e:
        logger.error(
            "Unexpected error loading config",
            file_path=path,
            operation="load_config",
            error_code=ErrorCodes.FILE_PROCESSING_ERROR,
            error=str(e),
            exc_info=True,
        )
        console.print(f"[red]Error loading config from {path}: {e}[/red]")
        return None


def save_config(
    config: PagesHeadersConfig, path: str = DEFAULT_CONFIG_PATH, dry_run: bool = False
) -> bool:
    """Save the configuration to a JSON file or print it for dry-run.

    Args:
        config (PagesHeadersConfig): The configuration to save.
        path (str, optional): Destination path. Defaults to "pagesheaders.json".
        dry_run (bool, optional): Whether to print instead of save. Defaults to False.

    Returns:
        bool: True if the operation was successful, False otherwise.
    """
    try:
        config_json = json.dumps(
            config.model_dump(by_alias=True, exclude_none=True), indent=2
        )
        if dry_run:
            logger.info(
                "Dry-run: Config preview", file_path=path, operation="save_config"
            )
            console.print("[cyan]Dry-run: Config JSON to be saved:[/cyan]")
            console.print(config_json)
            return True

        with open(path, "w", encoding="utf-8") as f:
            f.write(config_json)
        logger.info("Config saved successfully", file_path=path, operation="save_config")
        console.print(f"[green]Config saved to {path}[/green]")
        return True
    except Exception as e:
        logger.error(
            "Error saving config",
            file_path=path,
            operation="save_config",
            error_code=ErrorCodes.FILE_WRITE_ERROR,
            error=str(e),
            exc_info=True,
        )
        console.print(f"[red]Error saving config to {path}: {e}[/red]")
        return False
