#!/usr/bin/env python3
# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# pyre-strict


import enum
import json
import logging
import os
import shutil
import tempfile
import typing
from abc import ABC, abstractmethod
from os.path import join

from pyinstant.command_line import CommandRunner, get_default_runner, quote_path


ANDROID = "Android"

LEGACY_CANCELLED_REPORT = "Building Player was cancelled"

# Unity's log goes to stdout; error dialogs only show its last lines.
MAX_MESSAGE_LINES = 20


class BuildOptions(enum.IntFlag):
    # Values follow UnityEditor.BuildOptions.
    NONE = 0
    DEVELOPMENT = 1
    AUTO_RUN_PLAYER = 4
    SHOW_BUILT_PLAYER = 8
    BUILD_ADDITIONAL_STREAMED_SCENES = 16
    ACCEPT_EXTERNAL_MODIFICATIONS_TO_PLAYER = 32
    CONNECT_WITH_PROFILER = 256
    ALLOW_DEBUGGING = 512
    COMPRESS_WITH_LZ4 = 524288


class BuildResult(enum.Enum):
    UNKNOWN = 0
    SUCCEEDED = 1
    FAILED = 2
    CANCELLED = 3


class BuildRequest(typing.NamedTuple):
    output_path: str
    scenes: typing.List[str]
    options: BuildOptions
    target: str = ANDROID
    target_group: str = ANDROID
    asset_bundle_manifest_path: typing.Optional[str] = None

    def to_json(self) -> typing.Dict[str, typing.Any]:
        return {
            "locationPathName": self.output_path,
            "scenes": list(self.scenes),
            "options": int(self.options),
            "target": self.target,
            "targetGroup": self.target_group,
            "assetBundleManifestPath": self.asset_bundle_manifest_path or "",
        }


class BuildSummary(typing.NamedTuple):
    result: BuildResult
    total_errors: int
    message: typing.Optional[str] = None


def parse_legacy_build_report(report: typing.Optional[str]) -> BuildSummary:
    """
    Editors before 2018.1 report a build as a free-form string: empty on
    success, otherwise an error message. The cancellation string is the only
    way to tell a user cancellation apart from a failure.
    """
    if not report:
        return BuildSummary(BuildResult.SUCCEEDED, 0)
    if report == LEGACY_CANCELLED_REPORT:
        return BuildSummary(BuildResult.CANCELLED, 0, report)
    return BuildSummary(BuildResult.FAILED, 1, report)


def _parse_build_result(value: typing.Any) -> BuildResult:
    # JsonUtility writes enum fields as their integer value.
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return BuildResult(value)
        except ValueError:
            pass
    elif isinstance(value, str):
        try:
            return BuildResult[value.upper()]
        except KeyError:
            pass
    logging.debug("Unknown build result %r", value)
    return BuildResult.UNKNOWN


def parse_build_report(report: typing.Any) -> BuildSummary:
    """
    Converts a decoded report file into a BuildSummary. `result` may be the
    name or the integer value of a BuildResult.

    Raises ValueError if the report is not a JSON object or if its error
    count is not a non-negative integer.
    """
    if not isinstance(report, dict):
        raise ValueError("Expected a JSON object, got {}".format(type(report).__name__))
    if "legacyReport" in report:
        legacy_report = report["legacyReport"]
        if legacy_report is not None and not isinstance(legacy_report, str):
            raise ValueError("Invalid legacyReport {!r}".format(legacy_report))
        return parse_legacy_build_report(legacy_report)

    total_errors = report.get("totalErrors", 0)
    if (
        isinstance(total_errors, bool)
        or not isinstance(total_errors, int)
        or total_errors < 0
    ):
        raise ValueError("Invalid totalErrors {!r}".format(total_errors))
    return BuildSummary(_parse_build_result(report.get("result")), total_errors)


def tail_lines(text: str, max_lines: int = MAX_MESSAGE_LINES) -> str:
    lines = text.rstrip("\n").split("\n")
    if len(lines) <= max_lines:
        return text
    return "\n".join(lines[-max_lines:])


class BuildPipeline(ABC):
    @abstractmethod
    def build_player(self, request: BuildRequest) -> BuildSummary:
        pass


class UnityBuildPipeline(BuildPipeline):
    """
    Runs a player build in a batch-mode Unity editor. The editor-side method
    named by `execute_method` reads the request JSON and writes a report JSON
    to the paths passed on the command line.

    The report is {"result": ..., "totalErrors": n}, where result is either
    the BuildResult name or its integer value, or {"legacyReport": "..."} on
    editors before 2018.1. A missing or malformed report counts as a failed
    build carrying the end of Unity's log.
    """

    DEFAULT_EXECUTE_METHOD = "GooglePlayInstant.Editor.PlayInstantBatchBuild.Build"

    def __init__(
        self,
        unity_path: str,
        project_path: str,
        execute_method: typing.Optional[str] = None,
        runner: typing.Optional[CommandRunner] = None,
    ) -> None:
        self.unity_path = unity_path
        self.project_path = project_path
        self.execute_method: str = execute_method or self.DEFAULT_EXECUTE_METHOD
        self.runner: CommandRunner = runner or get_default_runner()

    def _arguments(self, request_path: str, report_path: str) -> str:
        return " ".join(
            [
                "-batchmode",
                "-nographics",
                "-quit",
                "-projectPath",
                quote_path(self.project_path),
                "-buildTarget",
                ANDROID,
                "-executeMethod",
                self.execute_method,
                "-playInstantBuildRequest",
                quote_path(request_path),
                "-playInstantBuildReport",
                quote_path(report_path),
                "-logFile",
                "-",
            ]
        )

    def build_player(self, request: BuildRequest) -> BuildSummary:
        work_dir = tempfile.mkdtemp("instant-build")
        try:
            request_path = join(work_dir, "request.json")
            report_path = join(work_dir, "report.json")
            with open(request_path, "w") as f:
                json.dump(request.to_json(), f)

            result = self.runner.run(
                self.unity_path, self._arguments(request_path, report_path)
            )
            if not os.path.exists(report_path):
                logging.debug("Unity wrote no report, exit code %d", result.exit_code)
                return BuildSummary(BuildResult.FAILED, 1, tail_lines(result.message))
            try:
                with open(report_path) as f:
                    return parse_build_report(json.load(f))
            except (OSError, ValueError) as e:
                logging.error("Could not read build report %s: %s", report_path, e)
                return BuildSummary(BuildResult.FAILED, 1, tail_lines(result.message))
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)
