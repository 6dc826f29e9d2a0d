# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import io
import os
import unittest
from unittest import mock

from pyinstant.notifier import (
    create_notifier,
    HeadlessNotifier,
    InteractiveNotifier,
)


class TestNotifier(unittest.TestCase):
    def interactive(self, answers):
        answers = list(answers)
        prompts = []

        def prompt(text):
            prompts.append(text)
            if not answers:
                raise EOFError()
            return answers.pop(0)

        output = io.StringIO()
        return InteractiveNotifier("game.config", prompt, output), prompts, output

    def test_confirm_ok(self):
        notifier, prompts, output = self.interactive(["ok"])
        self.assertTrue(notifier.confirm("Build Error", "Something broke"))
        self.assertEqual(prompts, ["[OK/Cancel]? "])
        self.assertIn("== Build Error ==", output.getvalue())
        self.assertIn("Something broke", output.getvalue())

    def test_confirm_cancel(self):
        notifier, _, _ = self.interactive(["Cancel"])
        self.assertFalse(notifier.confirm("Build Error", "msg"))

    def test_confirm_reprompts_on_unknown_answer(self):
        notifier, prompts, _ = self.interactive(["maybe", "y"])
        self.assertTrue(notifier.confirm("Build Error", "msg"))
        self.assertEqual(len(prompts), 2)

    def test_confirm_eof_declines(self):
        notifier, _, _ = self.interactive([])
        self.assertFalse(notifier.confirm("Build Error", "msg"))

    def test_alert(self):
        notifier, prompts, output = self.interactive([""])
        notifier.alert("Build Error", "msg")
        self.assertEqual(prompts, ["[OK] "])
        self.assertIn("msg", output.getvalue())

    def test_open_settings_in_editor(self):
        notifier, _, _ = self.interactive([])
        with mock.patch.dict(os.environ, {"VISUAL": "code -w"}), mock.patch(
            "subprocess.call"
        ) as call:
            notifier.show_player_settings()
        call.assert_called_once_with(["code", "-w", "game.config"])

    def test_open_settings_without_editor(self):
        notifier, _, _ = self.interactive([])
        env = {k: v for k, v in os.environ.items() if k not in ("VISUAL", "EDITOR")}
        with mock.patch.dict(os.environ, env, clear=True), mock.patch(
            "subprocess.call"
        ) as call:
            notifier.show_build_settings()
        call.assert_not_called()

    def test_headless(self):
        notifier = HeadlessNotifier()
        with self.assertLogs(level="ERROR") as logs:
            self.assertFalse(notifier.confirm("Build Error", "msg"))
        self.assertEqual(logs.output, ["ERROR:root:Build error in headless mode: msg"])
        notifier.alert("Build Error", "msg")

    def test_create_notifier(self):
        self.assertIsInstance(create_notifier(True), HeadlessNotifier)
        self.assertIsInstance(create_notifier(False), InteractiveNotifier)
        with mock.patch.dict(os.environ, {"CI": "1"}):
            self.assertIsInstance(create_notifier(None), HeadlessNotifier)
