#!/usr/bin/env python3
# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# pyre-strict


import logging
import shlex
import subprocess
import sys
import typing

from pyinstant.logger import log


class CommandResult(typing.NamedTuple):
    exit_code: int
    message: str


def quote_path(path: str) -> str:
    """
    Quotes a path so that it survives being embedded in an argument string,
    e.g. when it contains spaces or shell-special characters.
    """
    return shlex.quote(path)


class CommandRunner:
    """
    Runs external tools synchronously. Every external binary (jar, apksigner,
    Unity) is invoked through an instance of this class so callers can be
    tested with a fake runner.
    """

    def run(
        self,
        tool: str,
        arguments: str,
        working_directory: typing.Optional[str] = None,
    ) -> CommandResult:
        args = [tool] + shlex.split(arguments)
        logging.debug("Running %s (cwd=%s)", " ".join(args), working_directory)
        try:
            proc = subprocess.run(
                args,
                cwd=working_directory,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            logging.debug("Failed to start %s: %s", tool, e)
            return CommandResult(-1, f"Failed to run {tool}: {e}")

        out_str = proc.stdout.decode(sys.getfilesystemencoding(), errors="replace")
        log("%s exited with %d:\n%s" % (tool, proc.returncode, out_str))
        return CommandResult(proc.returncode, out_str)


_DEFAULT_RUNNER: CommandRunner = CommandRunner()


def get_default_runner() -> CommandRunner:
    return _DEFAULT_RUNNER
