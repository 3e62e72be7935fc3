"""Tests for hook names and virtual hook resolution."""

import pytest

from hookcaptain import hooks
from hookcaptain.errors import InvalidHookName


class TestHookNames:
    """Test recognized hook names."""

    def test_valid_hooks_contain_native_and_virtual(self) -> None:
        valid = hooks.get_valid_hooks()
        assert "pre-commit" in valid
        assert "post-change" in valid
        # real hooks first
        assert valid[-1] == "post-change"

    def test_validate_returns_name(self) -> None:
        assert hooks.validate("pre-push") == "pre-push"

    def test_validate_unknown_name(self) -> None:
        with pytest.raises(InvalidHookName) as exc_info:
            hooks.validate("pre-lunch", "hookcaptain.json")

        assert exc_info.value.name == "pre-lunch"
        assert "hookcaptain.json" in str(exc_info.value)
        assert isinstance(exc_info.value, LookupError)

    def test_argument_names(self) -> None:
        assert hooks.argument_names("commit-msg") == ("file",)
        assert hooks.argument_names("pre-commit") == ()


class TestVirtualHooks:
    """Test the real -> virtual hook mapping."""

    @pytest.mark.parametrize("hook", ["post-checkout", "post-merge", "post-rewrite"])
    def test_triggers_post_change(self, hook: str) -> None:
        assert hooks.triggers_virtual_hook(hook)
        assert hooks.get_virtual_hook(hook) == "post-change"

    def test_pre_commit_triggers_nothing(self) -> None:
        assert not hooks.triggers_virtual_hook("pre-commit")
        with pytest.raises(InvalidHookName):
            hooks.get_virtual_hook("pre-commit")

    def test_virtual_hook_triggers(self) -> None:
        assert hooks.get_virtual_hook_triggers("post-change") == ("post-checkout", "post-merge", "post-rewrite")
        assert hooks.is_virtual("post-change")
        assert not hooks.is_virtual("post-merge")
