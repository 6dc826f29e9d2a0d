#!/usr/bin/env python3
# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# pyre-strict


import logging
import typing

from pyinstant.apk_signer import ApkSigner
from pyinstant.configuration import BuildConfiguration
from pyinstant.notifier import (
    BUILD_SETTINGS_WINDOW_TITLE,
    CANCEL_BUTTON_TEXT,
    OK_BUTTON_TEXT,
    UserNotifier,
)
from pyinstant.pipeline import (
    ANDROID,
    BuildOptions,
    BuildPipeline,
    BuildRequest,
    BuildResult,
)
from pyinstant.policies import get_required_policies, SettingPolicy
from pyinstant.utils import time_it


BUILD_ERROR_TITLE = "Build Error"


class PlayInstantBuilder:
    """
    Builds Play Instant APKs. Problems are reported through the notifier and
    the log; the build methods only return whether the build succeeded.
    """

    def __init__(
        self,
        configuration: BuildConfiguration,
        pipeline: BuildPipeline,
        notifier: UserNotifier,
        signer: typing.Optional[ApkSigner] = None,
        policies: typing.Optional[typing.List[SettingPolicy]] = None,
    ) -> None:
        self.configuration = configuration
        self.pipeline = pipeline
        self.notifier = notifier
        self.signer: ApkSigner = signer or ApkSigner(
            configuration.keystore, configuration.keyalias, configuration.keypass
        )
        self.policies: typing.List[SettingPolicy] = (
            policies
            if policies is not None
            else get_required_policies(configuration.player_settings)
        )

    def get_editor_build_enabled_scenes(self) -> typing.List[str]:
        """
        Returns the enabled scenes of the project's "Scenes In Build" list.
        """
        return [
            scene.path
            for scene in self.configuration.editor_build_scenes
            if scene.enabled and scene.path
        ]

    def create_build_request(
        self, output_path: str, options: BuildOptions = BuildOptions.NONE
    ) -> BuildRequest:
        scenes = self.configuration.scenes_in_build
        if not scenes:
            scenes = self.get_editor_build_enabled_scenes()

        return BuildRequest(
            output_path=output_path,
            scenes=list(scenes),
            options=options,
            target=ANDROID,
            target_group=ANDROID,
            asset_bundle_manifest_path=self.configuration.asset_bundle_manifest_path,
        )

    def build_and_sign(self, request: BuildRequest) -> bool:
        """
        Builds a Play Instant APK and signs it (if necessary) with APK
        Signature Scheme V2.

        Returns True if the build succeeded, False if it failed or was cancelled.
        """
        if not self.build(request):
            return False

        if self.configuration.pipeline_always_signs:
            # Gradle builds from 2018.1+ editors are always properly signed.
            return True

        signer = self.signer
        if not signer.is_available():
            self.display_build_error(
                "Unable to locate apksigner. Check that a recent version of Android SDK "
                "Build-Tools is installed and check the log for more details on the error."
            )
            return False

        logging.info("Checking for APK Signature Scheme V2...")
        apk_path = request.output_path
        if signer.verify(apk_path):
            return True

        logging.info("APK must be re-signed for APK Signature Scheme V2...")
        signing_result = signer.sign_apk(apk_path)
        if signing_result is None:
            logging.info("Re-signed with APK Signature Scheme V2.")
            return True

        self.display_build_error(
            "Failed to re-sign the APK using apksigner:\n\n{}".format(signing_result)
        )
        return False

    def build(self, request: BuildRequest) -> bool:
        """
        Builds a Play Instant APK based on the specified request.

        Returns True if the build succeeded, False if it failed or was cancelled.
        """
        if not self.configuration.is_instant_build_type():
            logging.error('Build halted since selected build type is "Installed"')
            message = (
                'The currently selected Android build type is "Installed".\n\n'
                'Click "{}" to open the "{}" window where the build type can be '
                'changed to "Instant".'
            ).format(OK_BUTTON_TEXT, BUILD_SETTINGS_WINDOW_TITLE)
            if self.display_build_error_dialog(message):
                self.notifier.show_build_settings()
            return False

        failed_policies = [
            policy for policy in self.policies if not policy.is_correct_state()
        ]
        if failed_policies:
            logging.error(
                "Build halted due to incompatible settings: %s",
                ", ".join(policy.name for policy in failed_policies),
            )
            message = '{}\n\nClick "{}" to open the settings window and make required changes.'.format(
                "\n\n".join(_describe_policy(policy) for policy in failed_policies),
                OK_BUTTON_TEXT,
            )
            if self.display_build_error_dialog(message):
                self.notifier.show_player_settings()
            return False

        with time_it("Player build took {time:.2f} seconds", start="Building player"):
            summary = self.pipeline.build_player(request)

        if summary.result == BuildResult.CANCELLED:
            logging.info("Build cancelled")
            return False
        if summary.result == BuildResult.SUCCEEDED:
            # A build can report success and still have errors. They have
            # already been shown by the pipeline.
            return summary.total_errors == 0
        if summary.result == BuildResult.FAILED:
            message = "Build failed with {} error(s)".format(summary.total_errors)
            if summary.message:
                message += "\n\n" + summary.message
            self.display_build_error(message)
            return False

        self.display_build_error("Build failed with unknown error")
        return False

    def display_build_error_dialog(self, message: str) -> bool:
        """
        Shows a build error with an "OK" button that the user can click to
        perform a followup action, e.g. fixing a build setting.

        Returns True if the user clicked "OK". Headless notifiers always
        return False.
        """
        return self.notifier.confirm(
            BUILD_ERROR_TITLE, message, OK_BUTTON_TEXT, CANCEL_BUTTON_TEXT
        )

    def display_build_error(self, message: str) -> None:
        logging.error("Build error: %s", message)
        self.notifier.alert(BUILD_ERROR_TITLE, message, OK_BUTTON_TEXT)


def _describe_policy(policy: SettingPolicy) -> str:
    if policy.description:
        return f"{policy.name}\n{policy.description}"
    return policy.name
