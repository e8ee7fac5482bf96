"""Tests for option validation and per-level distribution."""

import pytest

from startcmd.config import WrapperOptions
from startcmd.validation import (
    ValidationError,
    parse_isolated_value,
    validate_options,
)

DEFAULT_IMAGE = "debian:latest"


def validate(**kwargs) -> WrapperOptions:
    return validate_options(WrapperOptions(**kwargs), default_image=lambda: DEFAULT_IMAGE)


class TestParseIsolatedValue:

    def test_single_backend(self):
        assert parse_isolated_value("docker") == ["docker"]

    def test_stack_is_lowercased(self):
        assert parse_isolated_value("Screen SSH docker") == ["screen", "ssh", "docker"]

    def test_placeholder_kept_as_none(self):
        assert parse_isolated_value("screen _") == ["screen", None]


class TestStack:

    def test_no_isolation(self):
        options = validate()
        assert options.isolated_stack == []
        assert options.backend is None
        assert options.mode == "attached"

    def test_single_level(self):
        options = validate(isolated="tmux")
        assert options.isolated_stack == ["tmux"]
        assert options.image_stack == [None]
        assert not options.is_stacked

    def test_seven_levels_accepted(self):
        options = validate(isolated=" ".join(["screen"] * 7))
        assert len(options.isolated_stack) == 7

    def test_eight_levels_rejected(self):
        with pytest.raises(ValidationError, match="too deep: 8 levels \\(max: 7\\)"):
            validate(isolated=" ".join(["screen"] * 8))

    def test_invalid_backend(self):
        with pytest.raises(ValidationError, match='Invalid isolation environment: "podman"'):
            validate(isolated="screen podman")

    def test_placeholder_backend(self):
        with pytest.raises(ValidationError, match="level 2 has no backend"):
            validate(isolated="screen _")

    def test_revalidation_is_stable(self):
        options = WrapperOptions(isolated="screen docker", image="_ alpine")
        validate_options(options, default_image=lambda: DEFAULT_IMAGE)
        first = (list(options.isolated_stack), list(options.image_stack))
        validate_options(options, default_image=lambda: DEFAULT_IMAGE)
        assert (options.isolated_stack, options.image_stack) == first
        assert options.image == "_ alpine"


class TestDocker:

    def test_default_image(self):
        options = validate(isolated="docker")
        assert options.image_stack == [DEFAULT_IMAGE]
        assert options.current_image == DEFAULT_IMAGE

    def test_explicit_image(self):
        options = validate(isolated="docker", image="alpine:3.19")
        assert options.current_image == "alpine:3.19"

    def test_default_image_fills_every_docker_level(self):
        options = validate(isolated="docker screen docker", image="alpine _ _")
        assert options.image_stack == ["alpine", None, DEFAULT_IMAGE]

    def test_image_without_docker(self):
        with pytest.raises(ValidationError, match="--image option is only valid"):
            validate(isolated="screen", image="alpine")

    def test_image_without_isolation(self):
        with pytest.raises(ValidationError, match="--image option is only valid"):
            validate(image="alpine")

    def test_image_sequence_length_mismatch(self):
        with pytest.raises(ValidationError, match="--image has 3 value"):
            validate(isolated="screen docker", image="_ _ alpine")

    def test_auto_remove_requires_docker(self):
        with pytest.raises(ValidationError, match="--auto-remove-docker-container"):
            validate(isolated="screen", auto_remove_docker_container=True)
        with pytest.raises(ValidationError, match="--auto-remove-docker-container"):
            validate(auto_remove_docker_container=True)

    def test_auto_remove_with_docker(self):
        options = validate(isolated="docker", auto_remove_docker_container=True)
        assert options.auto_remove_docker_container


class TestSsh:

    def test_endpoint_required(self):
        with pytest.raises(ValidationError, match="SSH isolation at level 1 requires --endpoint"):
            validate(isolated="ssh")

    def test_endpoint_required_at_nested_level(self):
        with pytest.raises(ValidationError, match="at level 2 requires --endpoint"):
            validate(isolated="screen ssh", endpoint="user@host _")

    def test_endpoint_sequence(self):
        options = validate(isolated="screen ssh docker", endpoint="_ user@host _")
        assert options.endpoint_stack == [None, "user@host", None]
        assert options.current_endpoint is None

    def test_scalar_endpoint_broadcast(self):
        options = validate(isolated="ssh ssh", endpoint="user@host")
        assert options.endpoint_stack == ["user@host", "user@host"]

    def test_endpoint_without_ssh(self):
        with pytest.raises(ValidationError, match="--endpoint option is only valid"):
            validate(isolated="screen", endpoint="user@host")


class TestSession:

    def test_scalar_names_first_level_only(self):
        options = validate(isolated="screen tmux", session="build")
        assert options.session_stack == ["build", None]
        assert options.current_session == "build"

    def test_session_sequence(self):
        options = validate(isolated="screen tmux", session="_ inner")
        assert options.session_stack == [None, "inner"]

    def test_session_without_isolation(self):
        with pytest.raises(ValidationError, match="--session option is only valid"):
            validate(session="build")

    def test_keep_alive_without_isolation(self):
        with pytest.raises(ValidationError, match="--keep-alive option is only valid"):
            validate(keep_alive=True)


class TestModesAndUser:

    def test_attached_and_detached(self):
        with pytest.raises(ValidationError, match="both --attached and --detached"):
            validate(isolated="screen", attached=True, detached=True)

    def test_detached_mode(self):
        assert validate(isolated="screen", detached=True).mode == "detached"

    def test_user_with_docker_first(self):
        with pytest.raises(ValidationError, match="--user is not supported with Docker"):
            validate(isolated="docker", user="alice")

    def test_user_with_docker_nested(self):
        options = validate(isolated="screen docker", user="alice")
        assert options.user == "alice"

    def test_user_without_isolation(self):
        assert validate(user="build-bot_1").user == "build-bot_1"

    @pytest.mark.parametrize("user", ["bad user", "root;rm", "a/b", ""])
    def test_invalid_username(self, user):
        with pytest.raises(ValidationError, match="Invalid username format"):
            validate(user=user)

    def test_username_too_long(self):
        with pytest.raises(ValidationError, match="Username too long"):
            validate(user="u" * 33)

    def test_session_id_must_be_uuid(self):
        with pytest.raises(ValidationError, match="Invalid session ID"):
            validate(session_id="not-a-uuid")

    def test_valid_session_id(self):
        sid = "3f2b8c1e-9d4a-4b6f-8e2a-1c5d7e9f0a3b"
        assert validate(session_id=sid).session_id == sid

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate(isolated="nope")
