# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import os
import stat
import tempfile
import unittest
from unittest import mock

from pyinstant import logger
from pyinstant.java_utils import find_jar
from pyinstant.utils import (
    _FindAndroidBuildToolHelper,
    remove_comments,
    time_it,
    ToolNotFoundError,
)


def _touch_executable(path):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w") as f:
        f.write("#!/bin/sh\n")
    os.chmod(path, os.stat(path).st_mode | stat.S_IXUSR)


def _android_env(**values):
    env = {
        k: v
        for k, v in os.environ.items()
        if k not in ("ANDROID_SDK", "ANDROID_HOME", "ANDROID_SDK_ROOT")
    }
    env.update(values)
    return mock.patch.dict(os.environ, env, clear=True)


class TestFindAndroidBuildTool(unittest.TestCase):
    def test_newest_build_tools_from_env(self):
        with tempfile.TemporaryDirectory() as sdk:
            for version in ["9.0.0", "28.0.3", "30.0.2", "not-a-version"]:
                _touch_executable(os.path.join(sdk, "build-tools", version, "apksigner"))
            with _android_env(ANDROID_HOME=sdk):
                found = _FindAndroidBuildToolHelper().find("apksigner", "apksigner")
            self.assertEqual(
                found, os.path.join(sdk, "build-tools", "30.0.2", "apksigner")
            )

    def test_explicit_sdk_path_comes_first(self):
        with tempfile.TemporaryDirectory() as env_sdk, tempfile.TemporaryDirectory() as sdk:
            _touch_executable(os.path.join(env_sdk, "build-tools", "30.0.0", "apksigner"))
            _touch_executable(os.path.join(sdk, "build-tools", "29.0.0", "apksigner"))
            helper = _FindAndroidBuildToolHelper()
            helper.add_android_sdk_path(sdk)
            with _android_env(ANDROID_HOME=env_sdk):
                found = helper.find("apksigner", "apksigner")
            self.assertEqual(found, os.path.join(sdk, "build-tools", "29.0.0", "apksigner"))

    def test_override(self):
        helper = _FindAndroidBuildToolHelper()
        helper.add_tool_override("apksigner", "/custom/apksigner")
        self.assertEqual(helper.find("apksigner", "apksigner"), "/custom/apksigner")

    def test_not_found(self):
        with _android_env(PATH=""):
            with self.assertRaises(ToolNotFoundError) as cm:
                _FindAndroidBuildToolHelper().find(
                    "apksigner", "apksigner-for-tests"
                )
        self.assertIn("PATH", str(cm.exception))


class TestFindJar(unittest.TestCase):
    def test_java_home(self):
        with tempfile.TemporaryDirectory() as java_home:
            jar = os.path.join(java_home, "bin", "jar")
            _touch_executable(jar)
            with mock.patch.dict(os.environ, {"JAVA_HOME": java_home}), mock.patch(
                "pyinstant.java_utils.IS_WINDOWS", False
            ):
                self.assertEqual(find_jar(), jar)

    def test_not_found(self):
        with tempfile.TemporaryDirectory() as java_home:
            with mock.patch.dict(os.environ, {"JAVA_HOME": java_home, "PATH": ""}):
                with self.assertRaises(ToolNotFoundError):
                    find_jar()


class TestUtils(unittest.TestCase):
    def test_remove_comments(self):
        lines = [
            '{"a": 1, # one\n',
            '"b": "#not a comment", # two\n',
            '"c": "say \\"#hi\\""}\n',
        ]
        self.assertEqual(
            remove_comments(lines),
            '{"a": 1, \n"b": "#not a comment", \n"c": "say \\"#hi\\""}\n',
        )

    def test_time_it_logs(self):
        with self.assertLogs(level="INFO") as logs:
            with time_it("Step took {time:.2f} seconds", start="Step"):
                pass
        self.assertEqual(logs.output[0], "INFO:root:Step")
        self.assertRegex(logs.output[1], r"^INFO:root:Step took \d+\.\d\d seconds$")


class TestLogger(unittest.TestCase):
    def test_parse_trace_string(self):
        self.assertEqual(logger.parse_trace_string(None), {})
        self.assertEqual(
            logger.parse_trace_string("INSTANT:2,OTHER:1"), {"INSTANT": 2, "OTHER": 1}
        )
        self.assertEqual(logger.parse_trace_string("3"), {logger.ALL: 3})

    def test_log_level(self):
        try:
            with mock.patch.dict(os.environ, {"TRACE": "OTHER:5"}):
                logger.reset_trace()
                self.assertEqual(logger.get_log_level(), 0)
            with mock.patch.dict(os.environ, {"TRACE": "INSTANT:1"}):
                logger.reset_trace()
                self.assertEqual(logger.get_log_level(), 1)
        finally:
            logger.reset_trace()
