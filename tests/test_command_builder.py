"""Tests for building the command each isolation level executes."""

from startcmd.command_builder import (
    build_next_level_command,
    build_next_level_options,
    escape_for_shell,
    get_current_backend,
    get_current_value,
    is_last_level,
)
from startcmd.config import WrapperOptions
from startcmd.validation import validate_options

SESSION_ID = "3f2b8c1e-9d4a-4b6f-8e2a-1c5d7e9f0a3b"


def resolved(**kwargs) -> WrapperOptions:
    return validate_options(WrapperOptions(**kwargs), default_image=lambda: "alpine:latest")


class TestBuildNextLevelCommand:

    def test_single_level_returns_command(self):
        options = resolved(isolated="docker", image="ubuntu:22.04")
        assert build_next_level_command(options, "npm test") == "npm test"

    def test_no_isolation_returns_command(self):
        assert build_next_level_command(resolved(), "ls -la") == "ls -la"

    def test_three_level_stack(self):
        options = resolved(
            isolated="screen ssh docker",
            endpoint="_ user@host _",
            image="_ _ ubuntu:22.04",
        )
        cmd = build_next_level_command(options, "npm test")
        assert cmd == (
            'start-command --isolated "ssh docker" '
            '--image "_ ubuntu:22.04" '
            '--endpoint "user@host _" '
            "-- npm test"
        )

    def test_wrapper_token_is_configurable(self):
        options = resolved(isolated="screen tmux")
        cmd = build_next_level_command(options, "echo hi", wrapper_command="$")
        assert cmd == '$ --isolated "tmux" -- echo hi'

    def test_all_placeholder_slots_are_omitted(self):
        options = resolved(isolated="docker screen", image="ubuntu:22.04 _")
        cmd = build_next_level_command(options, "make")
        assert "--image" not in cmd
        assert cmd == 'start-command --isolated "screen" -- make'

    def test_image_only_sent_to_docker_levels(self):
        # Scalar image is broadcast, but the screen level must not get it
        options = resolved(isolated="docker screen", image="ubuntu:22.04")
        assert "--image" not in build_next_level_command(options, "make")

    def test_flags_are_forwarded(self):
        options = resolved(
            isolated="screen docker",
            detached=True,
            keep_alive=True,
            auto_remove_docker_container=True,
            session_id=SESSION_ID,
        )
        cmd = build_next_level_command(options, "sleep 5")
        assert "--detached" in cmd
        assert "--keep-alive" in cmd
        assert f"--session-id {SESSION_ID}" in cmd
        assert "--auto-remove-docker-container" in cmd
        assert cmd.endswith("-- sleep 5")

    def test_auto_remove_dropped_when_no_docker_remains(self):
        options = resolved(isolated="docker screen", auto_remove_docker_container=True)
        assert "--auto-remove-docker-container" not in build_next_level_command(options, "x")

    def test_attached_is_not_forwarded(self):
        options = resolved(isolated="screen tmux", attached=True)
        assert "--attached" not in build_next_level_command(options, "x")

    def test_session_sequence_forwarded(self):
        options = resolved(isolated="screen tmux docker", session="outer middle inner")
        cmd = build_next_level_command(options, "x")
        assert '--session "middle inner"' in cmd

    def test_scalar_session_stays_on_first_level(self):
        options = resolved(isolated="screen tmux", session="outer")
        assert "--session" not in build_next_level_command(options, "x")


class TestBuildNextLevelOptions:

    def test_stacks_shift_together(self):
        options = resolved(
            isolated="screen ssh docker",
            endpoint="_ user@host _",
            image="_ _ ubuntu:22.04",
        )
        nxt = build_next_level_options(options)
        assert nxt.isolated_stack == ["ssh", "docker"]
        assert nxt.endpoint_stack == ["user@host", None]
        assert nxt.image_stack == [None, "ubuntu:22.04"]
        assert nxt.isolated == "ssh docker"
        assert nxt.endpoint == "user@host _"

    def test_original_untouched(self):
        options = resolved(isolated="screen tmux")
        build_next_level_options(options)
        assert options.isolated_stack == ["screen", "tmux"]

    def test_last_level_empties(self):
        nxt = build_next_level_options(resolved(isolated="tmux"))
        assert nxt.isolated_stack == []
        assert nxt.isolated is None
        assert is_last_level(nxt)


class TestHelpers:

    def test_escape_for_shell(self):
        assert escape_for_shell("echo 'hi'") == "echo '\\''hi'\\''"
        assert escape_for_shell("plain") == "plain"

    def test_is_last_level(self):
        assert is_last_level(resolved(isolated="docker"))
        assert not is_last_level(resolved(isolated="screen docker"))

    def test_current_backend(self):
        assert get_current_backend(resolved(isolated="tmux screen")) == "tmux"
        assert get_current_backend(WrapperOptions(isolated="docker")) == "docker"

    def test_current_value(self):
        assert get_current_value(["a", None]) == "a"
        assert get_current_value([]) is None
