#!/usr/bin/env python3
# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# pyre-strict


import typing


MIN_SDK_VERSION = 21
TARGET_SDK_VERSION = 26
# 0 lets the editor pick the highest installed API level.
TARGET_SDK_VERSION_AUTO = 0


class SettingPolicy:
    def __init__(
        self,
        name: str,
        description: str,
        is_correct_state: typing.Callable[[], bool],
    ) -> None:
        self.name = name
        self.description = description
        self._is_correct_state = is_correct_state

    def is_correct_state(self) -> bool:
        return self._is_correct_state()

    def __repr__(self) -> str:
        return f"SettingPolicy({self.name!r})"


def _as_int(value: typing.Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def get_required_policies(
    player_settings: typing.Dict[str, typing.Any]
) -> typing.List[SettingPolicy]:
    """
    Returns the player settings an instant app needs, in the order they are
    reported to the user.
    """

    def build_system_is_gradle() -> bool:
        return str(player_settings.get("build_system", "")).lower() == "gradle"

    def min_sdk_is_supported() -> bool:
        return _as_int(player_settings.get("min_sdk_version"), 0) >= MIN_SDK_VERSION

    def target_sdk_is_supported() -> bool:
        version = _as_int(
            player_settings.get("target_sdk_version"), TARGET_SDK_VERSION_AUTO
        )
        return version == TARGET_SDK_VERSION_AUTO or version >= TARGET_SDK_VERSION

    def multithreaded_rendering_disabled() -> bool:
        return not player_settings.get("multithreaded_rendering", True)

    def split_binary_disabled() -> bool:
        return not player_settings.get("split_application_binary", False)

    return [
        SettingPolicy(
            "Android build system should be Gradle",
            'Set "build_system" to "gradle"; instant apps are packaged with Gradle.',
            build_system_is_gradle,
        ),
        SettingPolicy(
            f"Android minimum API level should be {MIN_SDK_VERSION} or higher",
            f'Set "min_sdk_version" to at least {MIN_SDK_VERSION}.',
            min_sdk_is_supported,
        ),
        SettingPolicy(
            f"Android target API level should be {TARGET_SDK_VERSION} or higher",
            f'Set "target_sdk_version" to 0 (automatic) or at least {TARGET_SDK_VERSION}.',
            target_sdk_is_supported,
        ),
        SettingPolicy(
            "Android Multithreaded Rendering should be disabled",
            'Set "multithreaded_rendering" to false.',
            multithreaded_rendering_disabled,
        ),
        SettingPolicy(
            'Android "Split Application Binary" should be disabled',
            'Set "split_application_binary" to false; instant apps cannot use OBB files.',
            split_binary_disabled,
        ),
    ]
