"""Git hook names and the virtual hook table.

Real hooks are the git lifecycle triggers hookcaptain can be installed for.
Virtual hooks are synthetic names that aggregate several real triggers so
shared actions are configured once:

    post-change <- post-checkout, post-merge, post-rewrite

A real hook triggers at most one virtual hook.
"""

from __future__ import annotations

from hookcaptain.errors import InvalidHookName

APPLYPATCH_MSG = "applypatch-msg"
COMMIT_MSG = "commit-msg"
POST_CHECKOUT = "post-checkout"
POST_COMMIT = "post-commit"
POST_MERGE = "post-merge"
POST_REWRITE = "post-rewrite"
PRE_COMMIT = "pre-commit"
PREPARE_COMMIT_MSG = "prepare-commit-msg"
PRE_PUSH = "pre-push"
PRE_REBASE = "pre-rebase"

POST_CHANGE = "post-change"

NATIVE_HOOKS: tuple[str, ...] = (
    APPLYPATCH_MSG,
    COMMIT_MSG,
    POST_CHECKOUT,
    POST_COMMIT,
    POST_MERGE,
    POST_REWRITE,
    PRE_COMMIT,
    PREPARE_COMMIT_MSG,
    PRE_PUSH,
    PRE_REBASE,
)

VIRTUAL_HOOKS: tuple[str, ...] = (POST_CHANGE,)

# virtual hook -> real hooks that trigger it
VIRTUAL_HOOK_TRIGGERS: dict[str, tuple[str, ...]] = {
    POST_CHANGE: (POST_CHECKOUT, POST_MERGE, POST_REWRITE),
}

# Arguments git passes to each hook, in order
HOOK_ARGUMENTS: dict[str, tuple[str, ...]] = {
    APPLYPATCH_MSG: ("file",),
    COMMIT_MSG: ("file",),
    POST_CHECKOUT: ("previous-head", "new-head", "mode"),
    POST_COMMIT: (),
    POST_MERGE: ("squash",),
    POST_REWRITE: ("git-command",),
    PRE_COMMIT: (),
    PREPARE_COMMIT_MSG: ("file", "mode", "hash"),
    PRE_PUSH: ("target", "url"),
    PRE_REBASE: ("upstream", "branch"),
    POST_CHANGE: (),
}

_REAL_TO_VIRTUAL: dict[str, str] = {
    real: virtual for virtual, triggers in VIRTUAL_HOOK_TRIGGERS.items() for real in triggers
}


def get_valid_hooks() -> tuple[str, ...]:
    """Return every recognized hook name, real hooks first."""
    return NATIVE_HOOKS + VIRTUAL_HOOKS


def is_valid(name: str) -> bool:
    return name in NATIVE_HOOKS or name in VIRTUAL_HOOKS


def is_virtual(name: str) -> bool:
    return name in VIRTUAL_HOOKS


def validate(name: str, source: str | None = None) -> str:
    """Return the name unchanged or raise InvalidHookName.

    Args:
        name: Hook name to check
        source: Optional description of where the name came from, used in the message

    Raises:
        InvalidHookName: If the name is not a real or virtual hook
    """
    if not is_valid(name):
        raise InvalidHookName(name, source)
    return name


def triggers_virtual_hook(name: str) -> bool:
    return name in _REAL_TO_VIRTUAL


def get_virtual_hook(name: str) -> str:
    """Return the virtual hook triggered by a real hook.

    Raises:
        InvalidHookName: If the hook does not trigger a virtual hook
    """
    try:
        return _REAL_TO_VIRTUAL[name]
    except KeyError:
        raise InvalidHookName(name, "no virtual hook is triggered by it") from None


def get_virtual_hook_triggers(name: str) -> tuple[str, ...]:
    """Return the real hooks aggregated by a virtual hook."""
    validate(name)
    return VIRTUAL_HOOK_TRIGGERS.get(name, ())


def argument_names(name: str) -> tuple[str, ...]:
    """Return the names of the positional arguments git passes to a hook."""
    validate(name)
    return HOOK_ARGUMENTS.get(name, ())
