#!/usr/bin/env python3
# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# pyre-strict


"""
ZIP creation/extraction through Java's "jar" command.

Both functions return None if the operation succeeded, or the tool's output
as an error message if it failed.
"""

import typing

from pyinstant.command_line import CommandRunner, get_default_runner, quote_path
from pyinstant.java_utils import find_jar


def create_zip_file(
    zip_file_path: str,
    input_directory_name: str,
    input_file_name: str,
    runner: typing.Optional[CommandRunner] = None,
) -> typing.Optional[str]:
    """
    Creates a ZIP file containing the specified file in the specified directory.
    """
    if " " in input_file_name:
        raise ValueError("Spaces are not supported for input_file_name.")

    # "0" disables per-file compression, "M" skips the JAR manifest.
    arguments = "c0Mf {} -C {} {}".format(
        quote_path(zip_file_path),
        quote_path(input_directory_name),
        quote_path(input_file_name),
    )
    result = (runner or get_default_runner()).run(find_jar(), arguments)
    return None if result.exit_code == 0 else result.message


def unzip_file(
    zip_file_path: str,
    output_directory_name: str,
    runner: typing.Optional[CommandRunner] = None,
) -> typing.Optional[str]:
    """
    Extracts the specified ZIP file into the specified output directory.
    """
    arguments = "xf {}".format(quote_path(zip_file_path))
    result = (runner or get_default_runner()).run(
        find_jar(), arguments, output_directory_name
    )
    return None if result.exit_code == 0 else result.message
