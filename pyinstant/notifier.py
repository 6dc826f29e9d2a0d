#!/usr/bin/env python3
# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# pyre-strict


import logging
import os
import shlex
import subprocess
import sys
import typing
from abc import ABC, abstractmethod


OK_BUTTON_TEXT = "OK"
CANCEL_BUTTON_TEXT = "Cancel"

BUILD_SETTINGS_WINDOW_TITLE = "Play Instant Build Settings"
PLAYER_SETTINGS_WINDOW_TITLE = "Play Instant Player Settings"


def is_headless_mode() -> bool:
    if os.environ.get("CI"):
        return True
    stdin = sys.stdin
    return stdin is None or not stdin.isatty()


class UserNotifier(ABC):
    @abstractmethod
    def confirm(
        self,
        title: str,
        message: str,
        ok_text: str = OK_BUTTON_TEXT,
        cancel_text: str = CANCEL_BUTTON_TEXT,
    ) -> bool:
        """Returns True if the user chose `ok_text`."""

    @abstractmethod
    def alert(self, title: str, message: str, ok_text: str = OK_BUTTON_TEXT) -> None:
        pass

    @abstractmethod
    def show_build_settings(self) -> None:
        pass

    @abstractmethod
    def show_player_settings(self) -> None:
        pass


class HeadlessNotifier(UserNotifier):
    """Never prompts. Everything goes to the log."""

    def __init__(self, config_path: typing.Optional[str] = None) -> None:
        self.config_path = config_path

    def confirm(
        self,
        title: str,
        message: str,
        ok_text: str = OK_BUTTON_TEXT,
        cancel_text: str = CANCEL_BUTTON_TEXT,
    ) -> bool:
        # It isn't possible to prompt to fix the issue, so always decline.
        logging.error("Build error in headless mode: %s", message)
        return False

    def alert(self, title: str, message: str, ok_text: str = OK_BUTTON_TEXT) -> None:
        pass

    def show_build_settings(self) -> None:
        logging.info("Build settings are in %s", self.config_path or "the configuration")

    def show_player_settings(self) -> None:
        logging.info(
            "Player settings are under \"player_settings\" in %s",
            self.config_path or "the configuration",
        )


class InteractiveNotifier(UserNotifier):
    """
    Prompts on the terminal. Settings "windows" are opened by launching
    $VISUAL or $EDITOR on the configuration file.
    """

    def __init__(
        self,
        config_path: typing.Optional[str] = None,
        prompt: typing.Callable[[str], str] = input,
        output: typing.Optional[typing.TextIO] = None,
    ) -> None:
        self.config_path = config_path
        self.prompt = prompt
        self.output: typing.TextIO = output or sys.stderr

    def _write_dialog(self, title: str, message: str) -> None:
        self.output.write(f"\n== {title} ==\n{message}\n\n")
        self.output.flush()

    def confirm(
        self,
        title: str,
        message: str,
        ok_text: str = OK_BUTTON_TEXT,
        cancel_text: str = CANCEL_BUTTON_TEXT,
    ) -> bool:
        self._write_dialog(title, message)
        while True:
            try:
                answer = self.prompt(f"[{ok_text}/{cancel_text}]? ").strip().lower()
            except EOFError:
                return False
            if answer in (ok_text.lower(), "o", "y", "yes"):
                return True
            if answer in (cancel_text.lower(), "c", "n", "no", ""):
                return False

    def alert(self, title: str, message: str, ok_text: str = OK_BUTTON_TEXT) -> None:
        self._write_dialog(title, message)
        try:
            self.prompt(f"[{ok_text}] ")
        except EOFError:
            pass

    def _open_settings(self, window_title: str) -> None:
        config_path = self.config_path
        editor = os.environ.get("VISUAL") or os.environ.get("EDITOR")
        if not config_path or not editor:
            logging.info(
                "Open %s to edit the %s", config_path or "the configuration", window_title
            )
            return
        logging.info("Opening %s in %s", config_path, editor)
        subprocess.call(shlex.split(editor) + [config_path])

    def show_build_settings(self) -> None:
        self._open_settings(BUILD_SETTINGS_WINDOW_TITLE)

    def show_player_settings(self) -> None:
        self._open_settings(PLAYER_SETTINGS_WINDOW_TITLE)


def create_notifier(
    headless: typing.Optional[bool] = None, config_path: typing.Optional[str] = None
) -> UserNotifier:
    if headless is None:
        headless = is_headless_mode()
    if headless:
        return HeadlessNotifier(config_path)
    return InteractiveNotifier(config_path)
