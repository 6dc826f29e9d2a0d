#!/usr/bin/env python3
# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# pyre-strict


import argparse
import logging
import os
import re
import shutil
import timeit
import typing
from contextlib import contextmanager
from os.path import basename, dirname, join


IS_WINDOWS: bool = os.name == "nt"


class ToolNotFoundError(RuntimeError):
    pass


def _version_key(version: str) -> typing.Tuple[int, ...]:
    return tuple(int(part) for part in version.split("."))


class _FindAndroidBuildToolHelper:
    def __init__(self) -> None:
        self.sdk_search_order: typing.List[
            typing.Tuple[
                str,
                typing.Callable[[], typing.Optional[typing.List[str]]],
            ]
        ] = [
            (
                "Env",
                _FindAndroidBuildToolHelper.find_android_build_tools_by_env,
            ),
        ]
        self.tool_overrides: typing.Dict[str, str] = {}

    def add_tool_override(self, tool_name: str, path: str) -> None:
        self.tool_overrides[tool_name] = path

    def find(self, tool_name: str, tool: str) -> str:
        if tool_name in self.tool_overrides:
            res = self.tool_overrides[tool_name]
            logging.debug("Using tool override: %s -> %s", tool_name, res)
            return res

        result, attempts = self._run(tool)
        if result:
            return result

        raise ToolNotFoundError(
            f'Could not find {tool}, searched {", ".join(attempts)}'
        )

    def _run(self, tool: str) -> typing.Tuple[typing.Optional[str], typing.List[str]]:
        attempts: typing.List[str] = []

        for name, base_tools_fn in self.sdk_search_order:
            logging.debug("Attempting %s to find %s", name, tool)
            base_dirs = base_tools_fn()
            if not base_dirs:
                attempts.append(name + ":<Nothing>")
                continue
            for base_dir in base_dirs:
                candidate = join(base_dir, tool)
                if os.path.exists(candidate):
                    return candidate, attempts
                attempts.append(name + ":" + base_dir)

        # By `PATH`.
        logging.debug("Attempting PATH to find %s", tool)
        tool_path = shutil.which(tool)
        if tool_path is not None:
            return tool_path, attempts
        attempts.append("PATH")

        return None, attempts

    @staticmethod
    def _find_biggest_build_tools_version(base: str) -> typing.Optional[str]:
        VERSION_REGEXP = r"\d+\.\d+\.\d+$"
        build_tools = join(base, "build-tools")
        if not os.path.isdir(build_tools):
            logging.debug("No build-tools directory in %s", base)
            return None
        versions = [d for d in os.listdir(build_tools) if re.match(VERSION_REGEXP, d)]
        if not versions:
            logging.debug(
                "No version found in %s: %s", build_tools, os.listdir(build_tools)
            )
            return None
        version = max(versions, key=_version_key)
        logging.debug("max build tools version: %s", version)
        return join(build_tools, version)

    @staticmethod
    def _filter_none_not_exists_ret_none(
        input: typing.Optional[typing.List[typing.Optional[str]]],
    ) -> typing.Optional[typing.List[str]]:
        if input is None:
            return None
        filtered = [p for p in input if p and os.path.exists(p)]
        ret_val = filtered if filtered else None
        logging.debug("Filtered %s to %s = %s", input, filtered, ret_val)
        return ret_val

    @staticmethod
    def find_android_path_by_env() -> typing.Optional[typing.List[str]]:
        env_values: typing.List[typing.Optional[str]] = [
            os.environ[key]
            for key in ["ANDROID_SDK", "ANDROID_HOME", "ANDROID_SDK_ROOT"]
            if key in os.environ
        ]
        logging.debug("Android ENV values = %s", env_values)
        return _FindAndroidBuildToolHelper._filter_none_not_exists_ret_none(env_values)

    @staticmethod
    def find_android_build_tools_by_env() -> typing.Optional[typing.List[str]]:
        base = _FindAndroidBuildToolHelper.find_android_path_by_env()
        logging.debug("Android Build Tools base by env = %s", base)
        if not base:
            return None

        return _FindAndroidBuildToolHelper._filter_none_not_exists_ret_none(
            [
                _FindAndroidBuildToolHelper._find_biggest_build_tools_version(p)
                for p in base
            ]
        )

    def add_android_sdk_path(self, path: str) -> None:
        self.sdk_search_order.insert(
            0,
            (
                f"Path:{path}",
                lambda: _FindAndroidBuildToolHelper._filter_none_not_exists_ret_none(
                    [
                        _FindAndroidBuildToolHelper._find_biggest_build_tools_version(
                            path
                        ),
                        # Accept a build-tools/<version> directory as well.
                        path if basename(dirname(path)) == "build-tools" else None,
                    ]
                ),
            ),
        )


FIND_HELPER: _FindAndroidBuildToolHelper = _FindAndroidBuildToolHelper()


def add_android_sdk_path(path: str) -> None:
    FIND_HELPER.add_android_sdk_path(path)


def add_tool_override(tool_name: str, path: str) -> None:
    FIND_HELPER.add_tool_override(tool_name, path)


def find_apksigner() -> str:
    return FIND_HELPER.find("apksigner", "apksigner.bat" if IS_WINDOWS else "apksigner")


def remove_comments_from_line(line: str) -> str:
    (found_backslash, in_quote) = (False, False)
    for idx, c in enumerate(line):
        if c == "\\" and not found_backslash:
            found_backslash = True
        elif c == '"' and not found_backslash:
            found_backslash = False
            in_quote = not in_quote
        elif c == "#" and not in_quote:
            return line[:idx]
        else:
            found_backslash = False
    return line


def remove_comments(lines: typing.Iterable[str]) -> str:
    return "".join([remove_comments_from_line(line.rstrip("\n")) + "\n" for line in lines])


def argparse_yes_no_flag(
    parser: argparse.ArgumentParser,
    flag_name: str,
    on_prefix: str = "",
    off_prefix: str = "no-",
    default: typing.Optional[bool] = False,
    **kwargs: typing.Any,
) -> None:
    class FlagAction(argparse.Action):
        def __init__(self, option_strings, dest, nargs=None, **kwargs):
            super(FlagAction, self).__init__(option_strings, dest, nargs=0, **kwargs)

        def __call__(self, parser, namespace, values, option_string=None):
            setattr(
                namespace,
                self.dest,
                False if option_string.startswith(f"--{off_prefix}") else True,
            )

    parser.add_argument(
        f"--{on_prefix}{flag_name}",
        f"--{off_prefix}{flag_name}",
        dest=flag_name.replace("-", "_"),
        action=FlagAction,
        default=default,
        **kwargs,
    )


_TIME_IT_DEPTH: int = 0


@contextmanager
def time_it(
    fmt: str, *args: typing.Any, **kwargs: str
) -> typing.Generator[int, None, None]:
    global _TIME_IT_DEPTH
    this_depth = _TIME_IT_DEPTH
    _TIME_IT_DEPTH += 1

    if "start" in kwargs:
        logging.info("-" * this_depth + kwargs["start"])

    timer = timeit.default_timer
    start_time = timer()
    try:
        yield 1  # Irrelevant
    finally:
        end_time = timer()
        logging.info("-" * this_depth + fmt.format(time=end_time - start_time), *args)

        _TIME_IT_DEPTH -= 1
