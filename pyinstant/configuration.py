#!/usr/bin/env python3
# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# pyre-strict


import json
import logging
import typing

from pyinstant.utils import remove_comments


BUILD_TYPE_INSTANT = "instant"
BUILD_TYPE_INSTALLED = "installed"

DEFAULT_CONFIG_PATH = "play-instant.config"


class ConfigurationError(RuntimeError):
    pass


class EditorBuildScene(typing.NamedTuple):
    path: str
    enabled: bool


class UnitySettings(typing.NamedTuple):
    path: typing.Optional[str] = None
    project_path: typing.Optional[str] = None
    execute_method: typing.Optional[str] = None


class BuildConfiguration:
    """
    Build settings for a Play Instant build, usually loaded from a JSON
    config file. `#` comments are allowed in the file.
    """

    def __init__(
        self,
        build_type: str = BUILD_TYPE_INSTANT,
        scenes_in_build: typing.Optional[typing.List[str]] = None,
        asset_bundle_manifest_path: typing.Optional[str] = None,
        editor_build_scenes: typing.Optional[typing.List[EditorBuildScene]] = None,
        player_settings: typing.Optional[typing.Dict[str, typing.Any]] = None,
        pipeline_always_signs: bool = True,
        keystore: typing.Optional[str] = None,
        keyalias: typing.Optional[str] = None,
        keypass: typing.Optional[str] = None,
        unity: typing.Optional[UnitySettings] = None,
        config_path: typing.Optional[str] = None,
    ) -> None:
        self.build_type = build_type
        self.scenes_in_build: typing.List[str] = list(scenes_in_build or [])
        self.asset_bundle_manifest_path = asset_bundle_manifest_path
        self.editor_build_scenes: typing.List[EditorBuildScene] = list(
            editor_build_scenes or []
        )
        self.player_settings: typing.Dict[str, typing.Any] = dict(
            player_settings or {}
        )
        self.pipeline_always_signs = pipeline_always_signs
        self.keystore = keystore
        self.keyalias = keyalias
        self.keypass = keypass
        self.unity: UnitySettings = unity or UnitySettings()
        self.config_path = config_path

    def is_instant_build_type(self) -> bool:
        return self.build_type == BUILD_TYPE_INSTANT

    @staticmethod
    def from_dict(
        config: typing.Dict[str, typing.Any], config_path: typing.Optional[str] = None
    ) -> "BuildConfiguration":
        pipeline_always_signs = config.get("pipeline_always_signs", True)
        if not isinstance(pipeline_always_signs, bool):
            raise ConfigurationError(
                "pipeline_always_signs must be true or false, got {!r}".format(
                    pipeline_always_signs
                )
            )
        try:
            scenes = [
                EditorBuildScene(
                    path=entry.get("path") or "", enabled=bool(entry.get("enabled"))
                )
                for entry in config.get("editor_build_scenes", [])
            ]
            unity = config.get("unity", {})
            return BuildConfiguration(
                build_type=str(config.get("build_type", BUILD_TYPE_INSTANT)).lower(),
                scenes_in_build=config.get("scenes_in_build", []),
                asset_bundle_manifest_path=config.get("asset_bundle_manifest_path"),
                editor_build_scenes=scenes,
                player_settings=config.get("player_settings", {}),
                pipeline_always_signs=pipeline_always_signs,
                keystore=config.get("keystore"),
                keyalias=config.get("keyalias"),
                keypass=config.get("keypass"),
                unity=UnitySettings(
                    path=unity.get("path"),
                    project_path=unity.get("project_path"),
                    execute_method=unity.get("execute_method"),
                ),
                config_path=config_path,
            )
        except (AttributeError, TypeError) as e:
            raise ConfigurationError(
                f"Malformed configuration {config_path or '<dict>'}: {e}"
            ) from e

    @staticmethod
    def load(config_path: str) -> "BuildConfiguration":
        logging.debug("Loading configuration from %s", config_path)
        try:
            with open(config_path) as f:
                config = json.loads(remove_comments(f))
        except OSError as e:
            raise ConfigurationError(
                f"Could not read configuration {config_path}: {e}"
            ) from e
        except ValueError as e:
            raise ConfigurationError(
                f"Could not parse configuration {config_path}: {e}"
            ) from e
        if not isinstance(config, dict):
            raise ConfigurationError(
                f"Configuration {config_path} must contain a JSON object"
            )
        return BuildConfiguration.from_dict(config, config_path)
