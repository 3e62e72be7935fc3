"""Configuration loading and include merging.

Loading Precedence for Settings (Lowest to Highest):
===================================================

1. ``HOOKCAPTAIN_*`` environment variables
2. ``config`` sections of included documents, in include order
3. ``config`` section of the root document
4. Sibling settings file ``<stem>.config<suffix>`` (e.g. ``hookcaptain.config.json``)
5. Settings passed to ``load_configuration`` (CLI overrides)

Include Resolution:
===================

A document may list other documents under ``includes`` (or ``config.includes``).
Entries are paths relative to the including document, absolute paths, or
``http(s)://`` URLs. Includes are merged depth first and in list order before
the document's own hook declarations are applied.

The root document's ``config.include-level`` (default 1) is the include
budget. It is passed down the recursion and decremented per level; once it is
used up, further nested includes are skipped and an informational message is
logged. With ``include-level: 2`` a chain root -> a -> b -> c keeps a and b and
drops c.

Merge Rules per Hook:
=====================

- An include that enables a hook enables it in the including document.
- An explicit ``enabled`` in a document overrides what its includes produced.
- Actions of the root document replace included actions for that hook when
  the root declares a non-empty list; otherwise included actions are kept.
- Actions of an included document are appended after the actions of its own
  includes.
- Plugins keep their order. A plugin id declared by a document replaces the
  entries with that id coming from its includes; duplicates within a single
  document are all kept.
"""

import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
import yaml
from pydantic import ValidationError

from hookcaptain import config as cfg
from hookcaptain import hooks as hook_names
from hookcaptain.config import Action, Configuration, HookConfig, PluginConfig, RunConfig, Settings
from hookcaptain.errors import ConfigLoadError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "hookcaptain.json"
DEFAULT_INCLUDE_LEVEL = 1

_DOCUMENT_KEYS = frozenset({"config", cfg.INCLUDES, "$schema"})
_STRUCTURAL_CONFIG_KEYS = frozenset(
    {cfg.INCLUDES, cfg.INCLUDE_LEVEL, cfg.INCLUDE_LEVEL_ALIAS, cfg.RUN, cfg.PLUGINS, cfg.CUSTOM}
    | set(cfg.LEGACY_RUN_KEYS)
)
_YAML_SUFFIXES = (".yaml", ".yml")


def _is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


@dataclass
class _HookLayer:
    enabled: bool = False
    actions: list[Action] = field(default_factory=list)


@dataclass
class _Layer:
    """Merged state of one document and everything it includes."""

    settings: dict[str, Any] = field(default_factory=dict)
    run: dict[str, Any] = field(default_factory=dict)
    custom: dict[str, Any] = field(default_factory=dict)
    plugins: list[PluginConfig] = field(default_factory=list)
    hooks: dict[str, _HookLayer] = field(
        default_factory=lambda: {name: _HookLayer() for name in hook_names.get_valid_hooks()}
    )

    def absorb(self, other: "_Layer") -> None:
        """Merge an included layer into this one."""
        self.settings.update(other.settings)
        self.run.update(other.run)
        self.custom.update(other.custom)
        self.plugins.extend(other.plugins)
        for name, hook in other.hooks.items():
            target = self.hooks[name]
            if hook.enabled:
                target.enabled = True
            target.actions.extend(hook.actions)


class ConfigLoader:
    """Builds a Configuration from a root document and its includes.

    Attributes:
        http_client: Optional httpx client used to fetch remote includes
        timeout: Timeout in seconds for remote includes when no client is given
    """

    def __init__(self, http_client: httpx.Client | None = None, timeout: float = 10.0) -> None:
        self.http_client = http_client
        self.timeout = timeout

    def load(self, path: str | Path | None = None, settings: dict[str, Any] | None = None) -> Configuration:
        """Load and merge a configuration.

        Args:
            path: Root document, defaults to ./hookcaptain.json
            settings: Setting overrides applied last (dashed document keys)

        Returns:
            A new Configuration instance

        Raises:
            ConfigLoadError: If a document or include cannot be read or is invalid
            InvalidHookName: If a document references an unknown hook
        """
        root = Path(path) if path else Path.cwd() / DEFAULT_CONFIG_FILE
        root = root if root.is_absolute() else Path.cwd() / root

        layer = _Layer()
        file_exists = root.is_file()
        if file_exists:
            logger.debug("Loading configuration from %s", root)
            document = self.read_document(str(root))
            budget = self._include_level(document, str(root))
            layer = self._build_layer(document, str(root), budget, included=False)
        else:
            logger.debug("Configuration file %s not found, using defaults", root)

        settings_file = root.with_name(f"{root.stem}.config{root.suffix}")
        if settings_file.is_file():
            logger.debug("Applying settings file %s", settings_file)
            self._apply_config_section(layer, self.read_document(str(settings_file)), str(settings_file))

        if settings:
            self._apply_config_section(layer, settings, "settings overrides")

        configuration = self._build_configuration(layer, root, file_exists)
        validate_python_path(configuration)
        return configuration

    def read_document(self, location: str) -> dict[str, Any]:
        """Read and parse a JSON or YAML document from a path or URL.

        Raises:
            ConfigLoadError: If the document cannot be fetched, parsed, or is not a mapping
        """
        text = self._fetch(location) if _is_url(location) else self._read_file(location)
        suffix = Path(httpx.URL(location).path if _is_url(location) else location).suffix.lower()
        try:
            data = yaml.safe_load(text) if suffix in _YAML_SUFFIXES else json.loads(text or "{}")
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigLoadError(f"Invalid configuration document {location}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigLoadError(f"Configuration document {location} must contain a mapping")
        return data

    def _read_file(self, location: str) -> str:
        path = Path(location)
        if not path.is_file():
            raise ConfigLoadError(f"Config to include not found: {location}")
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigLoadError(f"Unable to read {location}: {e}") from e

    def _fetch(self, url: str) -> str:
        logger.debug("Fetching remote configuration %s", url)
        try:
            if self.http_client is not None:
                response = self.http_client.get(url)
            else:
                response = httpx.get(url, timeout=self.timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ConfigLoadError(f"Unable to fetch {url}: {e}") from e
        return response.text

    def _include_level(self, document: dict[str, Any], location: str) -> int:
        section = document.get("config") or {}
        if not isinstance(section, dict):
            raise ConfigLoadError(f"'config' in {location} must be a mapping")
        level = section.get(cfg.INCLUDE_LEVEL, section.get(cfg.INCLUDE_LEVEL_ALIAS, DEFAULT_INCLUDE_LEVEL))
        if isinstance(level, bool) or not isinstance(level, int) or level < 0:
            raise ConfigLoadError(f"'{cfg.INCLUDE_LEVEL}' in {location} must be a non-negative integer")
        return level

    def _build_layer(self, document: dict[str, Any], location: str, budget: int, included: bool) -> _Layer:
        """Merge a document's includes, then apply its own declarations.

        Args:
            document: Parsed document
            location: Path or URL of the document, used to resolve relative includes
            budget: Remaining include levels below this document
            included: Whether this document is itself an include
        """
        self._validate_keys(document, location)
        layer = _Layer()

        entries = self._include_entries(document, location)
        if entries and budget <= 0:
            logger.info("Include level exceeded in %s, skipping %d include(s)", location, len(entries))
        elif entries:
            for target in self._usable_includes(entries, document, location):
                logger.debug("Including %s from %s", target, location)
                child = self._build_layer(self.read_document(target), target, budget - 1, included=True)
                layer.absorb(child)

        self._apply_document(layer, document, location, included)
        return layer

    def _validate_keys(self, document: dict[str, Any], location: str) -> None:
        for key in document:
            if key not in _DOCUMENT_KEYS:
                hook_names.validate(key, location)

    def _include_entries(self, document: dict[str, Any], location: str) -> list[Any]:
        entries: list[Any] = []
        section = document.get("config") or {}
        if not isinstance(section, dict):
            raise ConfigLoadError(f"'config' in {location} must be a mapping")
        for raw in (document.get(cfg.INCLUDES), section.get(cfg.INCLUDES)):
            if raw is None:
                continue
            if isinstance(raw, str):
                raw = [raw]
            if not isinstance(raw, list):
                raise ConfigLoadError(f"'includes' in {location} must be a list")
            entries.extend(raw)
        return entries

    def _usable_includes(self, entries: list[Any], document: dict[str, Any], location: str) -> list[str]:
        """Resolve include entries, enforcing the include failure policy.

        Blank or non-string entries are tolerated only for skeleton documents: no
        usable entry at all and no actions declared by the document itself.
        """
        usable = [e for e in entries if isinstance(e, str) and e.strip()]
        unusable = [e for e in entries if not (isinstance(e, str) and e.strip())]
        if unusable:
            if usable or _declares_actions(document):
                raise ConfigLoadError(f"Invalid include entry {unusable[0]!r} in {location}")
            logger.info("No usable includes in %s, continuing with an empty layer", location)
        return [self._resolve_include(location, entry.strip()) for entry in usable]

    def _resolve_include(self, base: str, entry: str) -> str:
        if _is_url(entry):
            return entry
        if _is_url(base):
            return str(httpx.URL(base).join(entry))
        path = Path(entry).expanduser()
        if path.is_absolute():
            return str(path)
        return str(Path(base).parent / path)

    def _apply_config_section(self, layer: _Layer, section: Any, location: str) -> None:
        if not isinstance(section, dict):
            raise ConfigLoadError(f"'config' in {location} must be a mapping")
        try:
            layer.run.update(cfg.normalize_run_settings(section))
        except TypeError as e:
            raise ConfigLoadError(f"{e} in {location}") from e

        custom = section.get(cfg.CUSTOM) or {}
        if not isinstance(custom, dict):
            raise ConfigLoadError(f"'custom' in {location} must be a mapping")
        layer.custom.update(custom)

        plugins = section.get(cfg.PLUGINS) or []
        if not isinstance(plugins, list):
            raise ConfigLoadError(f"'plugins' in {location} must be a list")
        declared: list[PluginConfig] = []
        for plugin in plugins:
            if not isinstance(plugin, dict) or not isinstance(plugin.get("plugin"), str):
                raise ConfigLoadError(f"Invalid plugin entry {plugin!r} in {location}")
            options = plugin.get("options") or {}
            if not isinstance(options, dict):
                raise ConfigLoadError(f"Options of plugin '{plugin['plugin']}' in {location} must be a mapping")
            declared.append(PluginConfig(plugin=plugin["plugin"], options=options))
        if declared:
            ids = {p.plugin for p in declared}
            layer.plugins = [p for p in layer.plugins if p.plugin not in ids] + declared

        layer.settings.update({k: v for k, v in section.items() if k not in _STRUCTURAL_CONFIG_KEYS})

    def _apply_document(self, layer: _Layer, document: dict[str, Any], location: str, included: bool) -> None:
        self._apply_config_section(layer, document.get("config") or {}, location)

        for name in hook_names.get_valid_hooks():
            if name not in document:
                continue
            section = document[name]
            if not isinstance(section, dict):
                raise ConfigLoadError(f"Hook '{name}' in {location} must be a mapping")
            hook = layer.hooks[name]

            if "enabled" in section:
                if not isinstance(section["enabled"], bool):
                    raise ConfigLoadError(f"'enabled' of hook '{name}' in {location} must be a boolean")
                hook.enabled = section["enabled"]

            raw_actions = section.get("actions") or []
            if not isinstance(raw_actions, list):
                raise ConfigLoadError(f"'actions' of hook '{name}' in {location} must be a list")
            try:
                actions = [Action.from_document(a, included=included) for a in raw_actions]
            except (TypeError, ValidationError) as e:
                raise ConfigLoadError(f"Invalid action for hook '{name}' in {location}: {e}") from e

            if not actions:
                continue
            if included:
                hook.actions.extend(actions)
            else:
                if hook.actions:
                    logger.debug(
                        "Local actions of '%s' replace %d included action(s)", name, len(hook.actions)
                    )
                hook.actions = actions

    def _build_configuration(self, layer: _Layer, root: Path, file_exists: bool) -> Configuration:
        try:
            return Configuration(
                path=root,
                file_exists=file_exists,
                settings=Settings.from_document(layer.settings),
                run=RunConfig.from_document(layer.run),
                custom=layer.custom,
                plugins=tuple(layer.plugins),
                hooks={
                    name: HookConfig(name=name, enabled=hook.enabled, actions=tuple(hook.actions))
                    for name, hook in layer.hooks.items()
                },
            )
        except ValidationError as e:
            raise ConfigLoadError(f"Invalid configuration {root}: {e}") from e


def _declares_actions(document: dict[str, Any]) -> bool:
    for name in hook_names.get_valid_hooks():
        section = document.get(name)
        if isinstance(section, dict) and section.get("actions"):
            return True
    return False


def validate_python_path(configuration: Configuration) -> None:
    """Make sure a configured python-path points to something that exists.

    The full value, its first whitespace-separated token, and a PATH lookup are
    accepted, so values like ``"python3 -X dev"`` pass.

    Raises:
        ConfigLoadError: If nothing matches
    """
    python_path = configuration.python_path
    if not python_path:
        return
    candidates = [python_path, python_path.split()[0]]
    for candidate in candidates:
        if Path(candidate).exists() or shutil.which(candidate):
            return
    raise ConfigLoadError(f"The configured python-path is wrong: {python_path}")


def load_configuration(
    path: str | Path | None = None,
    settings: dict[str, Any] | None = None,
    *,
    http_client: httpx.Client | None = None,
) -> Configuration:
    """Load a configuration document with all includes resolved.

    Args:
        path: Root document, defaults to ./hookcaptain.json
        settings: Setting overrides applied last (dashed document keys)
        http_client: Optional httpx client for remote includes

    Returns:
        Configuration instance
    """
    return ConfigLoader(http_client=http_client).load(path, settings)


def serialize_document(configuration: Configuration, fmt: str = "json") -> str:
    """Serialize a configuration to JSON or YAML text."""
    document = configuration.to_document()
    if fmt in ("yaml", "yml"):
        return yaml.safe_dump(document, sort_keys=False)
    return json.dumps(document, indent=4) + "\n"


def write_configuration(configuration: Configuration, path: Path) -> None:
    """Write a configuration document, choosing the format from the suffix."""
    fmt = "yaml" if path.suffix.lower() in _YAML_SUFFIXES else "json"
    path.write_text(serialize_document(configuration, fmt), encoding="utf-8")
    logger.info("Configuration written to %s", path)
