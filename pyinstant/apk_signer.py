#!/usr/bin/env python3
# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# pyre-strict


import logging
import os
import typing
from os.path import isfile, join

from pyinstant.command_line import CommandRunner, get_default_runner, quote_path
from pyinstant.utils import find_apksigner, ToolNotFoundError


V2_VERIFIED_LINE = "Verified using v2 scheme (APK Signature Scheme v2): true"

DEBUG_KEY_ALIAS = "androiddebugkey"
DEBUG_KEY_PASSWORD = "android"


def get_debug_keystore() -> typing.Optional[str]:
    home = os.environ.get("HOME") or os.path.expanduser("~")
    keystore = join(home, ".android", "debug.keystore")
    return keystore if isfile(keystore) else None


class ApkSigner:
    """
    Wraps the Android SDK's apksigner tool for checking and applying
    APK Signature Scheme V2.
    """

    def __init__(
        self,
        keystore: typing.Optional[str] = None,
        keyalias: typing.Optional[str] = None,
        keypass: typing.Optional[str] = None,
        runner: typing.Optional[CommandRunner] = None,
    ) -> None:
        self.keystore = keystore
        self.keyalias = keyalias
        self.keypass = keypass
        self.runner: CommandRunner = runner or get_default_runner()

    def is_available(self) -> bool:
        try:
            path = find_apksigner()
        except ToolNotFoundError as e:
            logging.error("%s", e)
            return False
        logging.debug("Found apksigner at %s", path)
        return True

    def verify(self, apk_path: str) -> bool:
        """
        Returns True if the APK verifies and is signed with APK Signature
        Scheme V2.
        """
        result = self.runner.run(
            find_apksigner(), "verify --verbose {}".format(quote_path(apk_path))
        )
        if result.exit_code != 0:
            logging.info("apksigner verify failed: %s", result.message)
            return False
        return any(
            line.strip() == V2_VERIFIED_LINE for line in result.message.splitlines()
        )

    def _signing_key(self) -> typing.Optional[typing.Tuple[str, str, str]]:
        if self.keystore:
            if self.keyalias is None or self.keypass is None:
                return None
            return (self.keystore, self.keyalias, self.keypass)
        keystore = get_debug_keystore()
        if keystore is None:
            return None
        logging.debug("Using debug keystore %s", keystore)
        return (keystore, DEBUG_KEY_ALIAS, DEBUG_KEY_PASSWORD)

    def sign_apk(self, apk_path: str) -> typing.Optional[str]:
        """
        Re-signs the APK in place.

        Returns None if signing succeeded, or an error message if it failed.
        """
        key = self._signing_key()
        if key is None:
            return (
                "No keystore is configured and no Android debug keystore was found. "
                "Provide --keystore, --keyalias and --keypass."
            )
        keystore, keyalias, keypass = key
        arguments = " ".join(
            [
                "sign",
                "--v1-signing-enabled",
                "true",
                "--v2-signing-enabled",
                "true",
                "--ks",
                quote_path(keystore),
                "--ks-pass",
                quote_path("pass:" + keypass),
                "--ks-key-alias",
                quote_path(keyalias),
                quote_path(apk_path),
            ]
        )
        result = self.runner.run(find_apksigner(), arguments)
        if result.exit_code == 0:
            return None
        return result.message or "apksigner exited with code {}".format(
            result.exit_code
        )
