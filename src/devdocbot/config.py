"""DevDocBot configuration management.

Loads ``devdocbot.config.yaml`` (or ``.yml`` / ``.json``) from the project
root and merges it over the defaults. Keys are camelCase, the same as
in ``devdocbot.config.js`` files.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from devdocbot.utils.paths import CONFIG_FILENAMES, find_config_file
from devdocbot.vectorstore.schema import CollectionConfig

logger = logging.getLogger(__name__)

OUTPUT_DIR_ENV = "DEVDOCBOT_OUTPUT_DIR"

DEFAULT_OPTIONS: dict[str, Any] = {
    "includeSwagger": False,
    "swaggerPath": None,
    "includeReadme": True,
    "includeDocs": True,
    "useVectorStore": True,
    "vectorStorePath": None,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "outputDir": "./project-docs",
    "structure": {},
    "options": DEFAULT_OPTIONS,
    "vectorStore": CollectionConfig().to_dict(),
}

# Written by `devdocbot init`; users edit roots and modules to fit their tree.
TEMPLATE_STRUCTURE: dict[str, Any] = {
    "server": {
        "root": "server/src",
        "modules": {
            "routes": {"path": "routes", "pattern": "**/*.routes.{ts,js}", "description": "API route handlers"},
            "services": {"path": "services", "pattern": "**/*.service.{ts,js}", "description": "Business logic services"},
            "utils": {"path": "utils", "pattern": "**/*.{ts,js}", "description": "Utility functions"},
            "config": {"path": "config", "pattern": "**/*.{ts,js}", "description": "Configuration files"},
        },
    },
    "client": {
        "root": "client/src",
        "modules": {
            "pages": {"path": "pages", "pattern": "**/*.{tsx,jsx}", "description": "Page components"},
            "components": {"path": "components", "pattern": "**/*.{tsx,jsx}", "description": "Reusable UI components"},
            "services": {"path": "services", "pattern": "**/*.{ts,js}", "description": "API services"},
            "utils": {"path": "utils", "pattern": "**/*.{ts,js}", "description": "Utility functions"},
        },
    },
}


@dataclass
class ModuleConfig:
    """A named group of source files under a source root."""
    path: str
    pattern: str = "**/*"
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "pattern": self.pattern, "description": self.description}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ModuleConfig:
        return cls(
            path=d["path"],
            pattern=d.get("pattern", "**/*"),
            description=d.get("description", ""),
        )


@dataclass
class SourceRoot:
    """A server or client source tree and its modules."""
    root: str
    modules: dict[str, ModuleConfig] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": self.root,
            "modules": {name: m.to_dict() for name, m in self.modules.items()},
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SourceRoot:
        modules = d.get("modules") or {}
        return cls(
            root=d["root"],
            modules={name: ModuleConfig.from_dict(m) for name, m in modules.items() if m},
        )


@dataclass
class DocumentationOptions:
    """Which extra inputs a generation run ingests."""
    include_swagger: bool = False
    swagger_path: str | None = None
    include_readme: bool = True
    include_docs: bool = True
    use_vector_store: bool = True
    vector_store_path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "includeSwagger": self.include_swagger,
            "swaggerPath": self.swagger_path,
            "includeReadme": self.include_readme,
            "includeDocs": self.include_docs,
            "useVectorStore": self.use_vector_store,
            "vectorStorePath": self.vector_store_path,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DocumentationOptions:
        return cls(
            include_swagger=d.get("includeSwagger", False),
            swagger_path=d.get("swaggerPath"),
            include_readme=d.get("includeReadme", True),
            include_docs=d.get("includeDocs", True),
            use_vector_store=d.get("useVectorStore", True),
            vector_store_path=d.get("vectorStorePath"),
        )


@dataclass
class DevDocBotSettings:
    """Merged DevDocBot settings."""

    output_dir: str = "./project-docs"
    server: SourceRoot | None = None
    client: SourceRoot | None = None
    options: DocumentationOptions = field(default_factory=DocumentationOptions)
    vector_store: CollectionConfig = field(default_factory=CollectionConfig)

    def to_dict(self) -> dict[str, Any]:
        structure: dict[str, Any] = {}
        if self.server is not None:
            structure["server"] = self.server.to_dict()
        if self.client is not None:
            structure["client"] = self.client.to_dict()
        return {
            "outputDir": self.output_dir,
            "structure": structure,
            "options": self.options.to_dict(),
            "vectorStore": self.vector_store.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DevDocBotSettings:
        structure = d.get("structure") or {}
        server = structure.get("server")
        client = structure.get("client")
        return cls(
            output_dir=d.get("outputDir", "./project-docs"),
            server=SourceRoot.from_dict(server) if server else None,
            client=SourceRoot.from_dict(client) if client else None,
            options=DocumentationOptions.from_dict(d.get("options") or {}),
            vector_store=CollectionConfig.from_dict(
                deep_merge(CollectionConfig().to_dict(), d.get("vectorStore") or {})
            ),
        )


def load_config_file(path: Path) -> dict[str, Any]:
    """Load a YAML or JSON config file, returning empty dict if not found or invalid."""
    if not path.exists():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        logger.warning("Could not read config file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s does not contain a mapping, ignoring", path)
        return {}
    return data


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override into base, returning new dict.

    - Dicts are recursively merged
    - Lists are replaced (not appended)
    - Scalars are replaced
    """
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_settings(project_root: Path | None = None) -> DevDocBotSettings:
    """Load settings from the project config file over the defaults.

    DEVDOCBOT_OUTPUT_DIR, when set, overrides the configured outputDir.
    """
    merged = dict(DEFAULT_SETTINGS)

    if project_root is not None:
        config_path = find_config_file(project_root)
        if config_path is not None:
            merged = deep_merge(merged, load_config_file(config_path))

    env_output = os.environ.get(OUTPUT_DIR_ENV)
    if env_output:
        merged["outputDir"] = env_output

    return DevDocBotSettings.from_dict(merged)


def save_settings(settings: DevDocBotSettings, path: Path) -> None:
    """Save settings as YAML, or JSON when path ends in .json."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix == ".json":
        text = json.dumps(settings.to_dict(), indent=2) + "\n"
    else:
        text = yaml.safe_dump(settings.to_dict(), sort_keys=False)
    path.write_text(text, encoding="utf-8")


def default_config_path(project_root: Path) -> Path:
    return project_root / CONFIG_FILENAMES[0]


def validate_settings(settings: DevDocBotSettings) -> list[str]:
    """Validate settings, returning list of error messages (empty if valid)."""
    errors = []

    if not settings.output_dir:
        errors.append("outputDir must not be empty")

    for label, source in (("server", settings.server), ("client", settings.client)):
        if source is None:
            continue
        if not source.root:
            errors.append(f"structure.{label}.root is required")
        for name, module in source.modules.items():
            if not module.path:
                errors.append(f"structure.{label}.modules.{name}.path is required")
            if not module.pattern:
                errors.append(f"structure.{label}.modules.{name}.pattern is required")

    if settings.options.include_swagger and not settings.options.swagger_path:
        errors.append("options.swaggerPath is required when includeSwagger is set")

    return errors
