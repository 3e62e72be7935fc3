"""Configuration data model for hookcaptain.

A ``Configuration`` is built once per process by ``hookcaptain.loader`` and is
read-only afterwards. It always holds one ``HookConfig`` per recognized hook
name, so every lookup of a valid hook succeeds even if the hook was never
configured.

Document shape (JSON or YAML):

    {
        "config": {
            "verbosity": "verbose",
            "run": {"mode": "docker", "docker-command": "docker exec app"},
            "plugins": [{"plugin": "my.plugin:Plugin", "options": {}}],
            "custom": {"foo": "bar"}
        },
        "pre-commit": {
            "enabled": true,
            "actions": [
                {
                    "action": "pytest -q",
                    "options": {},
                    "conditions": [{"exec": "file-staged.of-type", "args": ["py"]}],
                    "config": {"label": "Tests", "failureAllowed": false}
                }
            ]
        }
    }
"""

import logging
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hookcaptain import hooks as hook_names

logger = logging.getLogger(__name__)

# Base setting keys as written in documents
ALLOW_FAILURE = "allow-failure"
BOOTSTRAP = "bootstrap"
GIT_DIRECTORY = "git-directory"
PYTHON_PATH = "python-path"
VERBOSITY = "verbosity"
USE_COLORS = "use-colors"
FAIL_ON_FIRST_ERROR = "fail-on-first-error"

# Structural keys of the "config" section that are not base settings
INCLUDES = "includes"
INCLUDE_LEVEL = "include-level"
INCLUDE_LEVEL_ALIAS = "includes-level"
RUN = "run"
PLUGINS = "plugins"
CUSTOM = "custom"

# Legacy flat run keys -> nested run keys
LEGACY_RUN_KEYS = {
    "run-mode": "mode",
    "run-exec": "docker-command",
    "run-path": "path-captain",
    "run-git": "path-git",
}

COMPOSITE_CONDITIONS = ("AND", "OR")

Verbosity = Literal["quiet", "normal", "verbose", "debug"]
RunMode = Literal["shell", "docker", "wsl", "python"]


def to_field_name(key: str) -> str:
    return key.replace("-", "_")


def to_document_key(name: str) -> str:
    return name.replace("_", "-")


class Settings(BaseSettings):
    """Base settings, overridable through ``HOOKCAPTAIN_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HOOKCAPTAIN_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    allow_failure: bool = False
    """Actions without their own failureAllowed flag may fail without failing the hook"""

    bootstrap: str = ""
    """Python file executed before in-process actions run"""

    git_directory: str = ""
    """Path to the .git directory, relative paths are relative to the configuration file"""

    python_path: str = ""
    """Interpreter used by generated hook scripts"""

    verbosity: Verbosity = "normal"
    """Output verbosity"""

    use_colors: bool = True
    """Use ANSI colors in terminal output"""

    fail_on_first_error: bool = True
    """Stop processing a hook at the first failing action"""

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "Settings":
        """Build settings from dashed document keys, ignoring unknown keys."""
        known = set(cls.model_fields)
        values = {to_field_name(k): v for k, v in data.items() if to_field_name(k) in known}
        return cls(**values)

    def to_document(self) -> dict[str, Any]:
        """Return only explicitly set settings, with dashed keys."""
        return {to_document_key(k): v for k, v in self.model_dump(exclude_unset=True).items()}


class RunConfig(BaseModel):
    """How hookcaptain itself is run from the installed git hook scripts."""

    model_config = ConfigDict(frozen=True)

    mode: RunMode = "shell"
    """Execution mode: native shell, docker container, wsl or python interpreter"""

    docker_command: str = ""
    """Command prefix used to run inside a container (e.g. 'docker exec app')"""

    captain_path: str = ""
    """Path to the hookcaptain executable"""

    git_path: str = ""
    """Path to the git binary"""

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "RunConfig":
        return cls(
            mode=data.get("mode", "shell"),
            docker_command=data.get("docker-command", ""),
            captain_path=data.get("path-captain", ""),
            git_path=data.get("path-git", ""),
        )

    def to_document(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.mode != "shell":
            data["mode"] = self.mode
        if self.docker_command:
            data["docker-command"] = self.docker_command
        if self.captain_path:
            data["path-captain"] = self.captain_path
        if self.git_path:
            data["path-git"] = self.git_path
        return data


def normalize_run_settings(config_section: dict[str, Any]) -> dict[str, Any]:
    """Fold legacy flat ``run-*`` keys into the nested ``run`` mapping.

    Nested keys win over legacy ones. The input mapping is not modified.

    Args:
        config_section: Raw "config" section of a document

    Returns:
        Nested run settings with document keys
    """
    run: dict[str, Any] = {}
    for legacy, nested in LEGACY_RUN_KEYS.items():
        if legacy in config_section:
            run[nested] = config_section[legacy]
    nested_run = config_section.get(RUN) or {}
    if not isinstance(nested_run, dict):
        raise TypeError(f"'run' must be a mapping, got {type(nested_run).__name__}")
    run.update(nested_run)
    return run


class PluginConfig(BaseModel):
    """A plugin reference plus the options handed to it."""

    model_config = ConfigDict(frozen=True)

    plugin: str
    options: dict[str, Any] = Field(default_factory=dict)

    def to_document(self) -> dict[str, Any]:
        data: dict[str, Any] = {"plugin": self.plugin}
        if self.options:
            data["options"] = dict(self.options)
        return data


class Condition(BaseModel):
    """A guard evaluated before an action runs.

    Leaf conditions carry ``args`` for the condition implementation. ``AND``/``OR``
    composites carry their children in ``conditions`` instead.
    """

    model_config = ConfigDict(frozen=True)

    exec: str
    args: list[Any] | dict[str, Any] = Field(default_factory=list)
    conditions: tuple["Condition", ...] = ()

    @property
    def is_composite(self) -> bool:
        return self.exec.upper() in COMPOSITE_CONDITIONS

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "Condition":
        """Parse a condition entry, recursing into AND/OR children.

        Raises:
            TypeError: If the entry or its children are malformed
        """
        if not isinstance(data, dict):
            raise TypeError(f"Condition must be a mapping, got {type(data).__name__}")
        exec_ = data.get("exec", data.get("name"))
        if not isinstance(exec_, str) or not exec_:
            raise TypeError(f"Condition is missing 'exec': {data}")
        args = data.get("args", [])
        if exec_.upper() in COMPOSITE_CONDITIONS:
            if not isinstance(args, list):
                raise TypeError(f"{exec_.upper()} condition args must be a list of conditions")
            return cls(exec=exec_, conditions=tuple(cls.from_document(child) for child in args))
        if args is None or args == {}:
            args = []
        elif not isinstance(args, (list, dict)):
            args = [args]
        return cls(exec=exec_, args=args)

    def to_document(self) -> dict[str, Any]:
        if self.is_composite:
            return {"exec": self.exec, "args": [c.to_document() for c in self.conditions]}
        data: dict[str, Any] = {"exec": self.exec}
        if self.args:
            data["args"] = self.args
        return data


class Action(BaseModel):
    """One configured unit of work for a hook."""

    model_config = ConfigDict(frozen=True)

    action: str
    """Import path of a Python callable or a shell command template"""

    label: str = ""
    """Display label, defaults to the action identifier"""

    options: dict[str, Any] = Field(default_factory=dict)
    conditions: tuple[Condition, ...] = ()

    failure_allowed: bool | None = None
    """Per-action failure tolerance, None falls back to the global allow-failure setting"""

    included: bool = False
    """True if the action comes from an included document"""

    @model_validator(mode="before")
    @classmethod
    def _default_label(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("label"):
            data = {**data, "label": data.get("action", "")}
        return data

    def is_failure_allowed(self, default: bool = False) -> bool:
        return default if self.failure_allowed is None else self.failure_allowed

    @classmethod
    def from_document(cls, data: dict[str, Any], included: bool = False) -> "Action":
        """Parse an action entry of a hook section.

        Raises:
            TypeError: If the entry is malformed
        """
        if not isinstance(data, dict):
            raise TypeError(f"Action must be a mapping, got {type(data).__name__}")
        action = normalize_action(data.get("action"))
        options = data.get("options") or {}
        if not isinstance(options, dict):
            raise TypeError(f"Options of action '{action}' must be a mapping")
        conditions = data.get("conditions") or []
        if not isinstance(conditions, list):
            raise TypeError(f"Conditions of action '{action}' must be a list")
        settings = data.get("config") or {}
        if not isinstance(settings, dict):
            raise TypeError(f"Config of action '{action}' must be a mapping")
        failure_allowed = settings.get("failureAllowed", settings.get(ALLOW_FAILURE))
        return cls(
            action=action,
            label=settings.get("label", ""),
            options=options,
            conditions=tuple(Condition.from_document(c) for c in conditions),
            failure_allowed=failure_allowed,
            included=included,
        )

    def to_document(self) -> dict[str, Any]:
        data: dict[str, Any] = {"action": self.action}
        if self.options:
            data["options"] = dict(self.options)
        if self.conditions:
            data["conditions"] = [c.to_document() for c in self.conditions]
        settings: dict[str, Any] = {}
        if self.label != self.action:
            settings["label"] = self.label
        if self.failure_allowed is not None:
            settings["failureAllowed"] = self.failure_allowed
        if settings:
            data["config"] = settings
        return data


def normalize_action(value: Any) -> str:
    """Join a multi-line action (string or list of lines) into a single line."""
    if isinstance(value, list):
        value = " ".join(str(part).strip() for part in value)
    if not isinstance(value, str) or not value.strip():
        raise TypeError(f"Action identifier must be a non-empty string, got {value!r}")
    if "\n" in value or "\r" in value:
        value = " ".join(line.strip() for line in value.splitlines() if line.strip())
    return value.strip()


class HookConfig(BaseModel):
    """Enabled flag and ordered actions of one hook."""

    model_config = ConfigDict(frozen=True)

    name: str
    enabled: bool = False
    actions: tuple[Action, ...] = ()

    executable: bool = False
    """True for the trigger-time view built by Configuration.get_executable_hook_config"""

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, value: str) -> str:
        # LookupError is not wrapped by pydantic, so InvalidHookName propagates as is
        return hook_names.validate(value)

    def has_actions(self) -> bool:
        return bool(self.actions)

    def has_local_actions(self) -> bool:
        return any(not action.included for action in self.actions)

    def to_document(self) -> dict[str, Any]:
        return {"enabled": self.enabled, "actions": [a.to_document() for a in self.actions]}


def _default_hooks() -> dict[str, HookConfig]:
    return {name: HookConfig(name=name) for name in hook_names.get_valid_hooks()}


class Configuration(BaseModel):
    """Fully resolved, read-only hookcaptain configuration."""

    model_config = ConfigDict(frozen=True)

    path: Path = Field(default_factory=lambda: Path.cwd() / "hookcaptain.json")
    """Absolute path of the configuration document"""

    file_exists: bool = False
    """Whether the configuration was loaded from an existing file"""

    settings: Settings = Field(default_factory=Settings)
    run: RunConfig = Field(default_factory=RunConfig)
    custom: dict[str, Any] = Field(default_factory=dict)
    plugins: tuple[PluginConfig, ...] = ()
    hooks: dict[str, HookConfig] = Field(default_factory=_default_hooks)

    @field_validator("path", mode="after")
    @classmethod
    def _absolute_path(cls, value: Path) -> Path:
        return value if value.is_absolute() else Path.cwd() / value

    @field_validator("hooks", mode="before")
    @classmethod
    def _complete_hooks(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        for name in value:
            hook_names.validate(name)
        completed = _default_hooks()
        completed.update(value)
        return completed

    def is_failure_allowed(self) -> bool:
        return self.settings.allow_failure

    def is_hook_enabled(self, hook: str, consider_virtual: bool = True) -> bool:
        """Check whether a hook is enabled directly or through its virtual hook.

        Args:
            hook: Hook name
            consider_virtual: Also report enabled if the virtual hook it triggers is enabled

        Raises:
            InvalidHookName: If the hook name is unknown
        """
        hook_config = self.get_hook_config(hook)
        if hook_config.enabled:
            return True
        if consider_virtual and hook_names.triggers_virtual_hook(hook):
            return self.get_hook_config(hook_names.get_virtual_hook(hook)).enabled
        return False

    @property
    def git_directory(self) -> str:
        """Configured .git directory, made absolute relative to the config file."""
        configured = self.settings.git_directory
        if not configured:
            return os.path.join(os.getcwd(), ".git")
        if os.path.isabs(configured):
            return configured
        return os.path.join(str(self.path.parent), configured)

    def get_bootstrap(self, default: str = "") -> str:
        return self.settings.bootstrap or default

    @property
    def verbosity(self) -> str:
        return self.settings.verbosity

    @property
    def use_colors(self) -> bool:
        return self.settings.use_colors

    @property
    def python_path(self) -> str:
        return self.settings.python_path

    @property
    def fail_on_first_error(self) -> bool:
        return self.settings.fail_on_first_error

    def get_custom_settings(self) -> dict[str, Any]:
        return dict(self.custom)

    def get_hook_config(self, hook: str) -> HookConfig:
        """Return the stored config of a hook.

        Raises:
            InvalidHookName: If the hook name is unknown
        """
        hook_names.validate(hook)
        return self.hooks[hook]

    @property
    def hook_configs(self) -> list[HookConfig]:
        return [self.hooks[name] for name in hook_names.get_valid_hooks()]

    def get_executable_hook_config(self, hook: str) -> HookConfig:
        """Build the list of actions to run when a hook is triggered.

        The real hook's actions come first, followed by the actions of the virtual
        hook it triggers if that virtual hook is enabled. The result is built fresh
        on every call.

        Raises:
            InvalidHookName: If the hook name is unknown
        """
        hook_config = self.get_hook_config(hook)
        actions = list(hook_config.actions)
        if hook_names.triggers_virtual_hook(hook):
            virtual_config = self.get_hook_config(hook_names.get_virtual_hook(hook))
            if virtual_config.enabled:
                actions.extend(virtual_config.actions)
        return HookConfig(name=hook, enabled=True, actions=tuple(actions), executable=True)

    def to_document(self) -> dict[str, Any]:
        """Serialize into a configuration document.

        Includes are already resolved, so the document has no "includes" key and
        every action is written as a local one.
        """
        data: dict[str, Any] = {}
        config = self.settings.to_document()
        run = self.run.to_document()
        if run:
            config[RUN] = run
        if self.plugins:
            config[PLUGINS] = [p.to_document() for p in self.plugins]
        if self.custom:
            config[CUSTOM] = dict(self.custom)
        if config:
            data["config"] = config
        for hook_config in self.hook_configs:
            if hook_config.has_actions() or hook_config.enabled:
                data[hook_config.name] = hook_config.to_document()
        return data


__all__ = [
    "Action",
    "Condition",
    "Configuration",
    "HookConfig",
    "PluginConfig",
    "RunConfig",
    "Settings",
    "normalize_action",
    "normalize_run_settings",
]
