#!/usr/bin/env python3
# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# pyre-strict


import logging
import os
import shutil
from os.path import join

from pyinstant.utils import IS_WINDOWS, ToolNotFoundError


def find_jar() -> str:
    jar = "jar.exe" if IS_WINDOWS else "jar"
    attempts = []

    java_home = os.environ.get("JAVA_HOME")
    if java_home:
        candidate = join(java_home, "bin", jar)
        if os.path.exists(candidate):
            logging.debug("Using jar from JAVA_HOME: %s", candidate)
            return candidate
        attempts.append("JAVA_HOME:" + java_home)
    else:
        attempts.append("JAVA_HOME:<Nothing>")

    jar_path = shutil.which(jar)
    if jar_path is not None:
        return jar_path
    attempts.append("PATH")

    raise ToolNotFoundError(
        f'Could not find {jar}, searched {", ".join(attempts)}. '
        "Check that a JDK is installed and JAVA_HOME is set."
    )
