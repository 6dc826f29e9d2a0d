#!/usr/bin/env python3
# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

# pyre-strict

import argparse
import logging
import os
import sys
import typing

from pyinstant.apk_signer import ApkSigner
from pyinstant.archive import create_zip_file, unzip_file
from pyinstant.builder import PlayInstantBuilder
from pyinstant.configuration import (
    BuildConfiguration,
    ConfigurationError,
    DEFAULT_CONFIG_PATH,
)
from pyinstant.notifier import create_notifier
from pyinstant.pipeline import BuildOptions, UnityBuildPipeline
from pyinstant.utils import (
    add_android_sdk_path,
    add_tool_override,
    argparse_yes_no_flag,
    ToolNotFoundError,
)


def arg_parser() -> argparse.ArgumentParser:
    description = """
Build and sign Play Instant APKs with a batch-mode Unity editor, and
create or extract ZIP files with the JDK's jar tool.

"""
    parser = argparse.ArgumentParser(
        formatter_class=argparse.RawDescriptionHelpFormatter, description=description
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warn", "warning", "info", "debug"],
        help="Specify the python logging level",
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True

    build = subparsers.add_parser("build", help="Build (and sign) an instant APK")
    build.add_argument(
        "-c",
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"Configuration file (defaults to {DEFAULT_CONFIG_PATH})",
    )
    build.add_argument(
        "-o",
        "--out",
        type=os.path.realpath,
        default="instant-out.apk",
        help="Output APK file name (defaults to instant-out.apk)",
    )
    build.add_argument(
        "--development", action="store_true", help="Make a development build"
    )
    build.add_argument("--unity", help="Path to the Unity editor binary")
    build.add_argument("--project-path", help="Path to the Unity project")
    build.add_argument("--execute-method", help="Editor method that runs the build")
    build.add_argument("-s", "--keystore", nargs="?")
    build.add_argument("-a", "--keyalias", nargs="?")
    build.add_argument("-p", "--keypass", nargs="?")
    build.add_argument(
        "--android-sdk-path",
        help="Path to Android SDK. Used to find apksigner",
    )
    build.add_argument("--apksigner-path", help="Path to apksigner")
    argparse_yes_no_flag(
        build,
        "pipeline-always-signs",
        default=None,
        help="Whether the editor always produces a V2-signed APK "
        "(overrides the configuration)",
    )
    argparse_yes_no_flag(
        build,
        "headless",
        default=None,
        help="Never prompt (defaults to headless when stdin is not a terminal)",
    )

    zip_parser = subparsers.add_parser(
        "zip", help="Create a ZIP file containing one file of a directory"
    )
    zip_parser.add_argument("zip_file", help="ZIP file to create")
    zip_parser.add_argument("input_directory", help="Directory the entry is in")
    zip_parser.add_argument("input_file", help="Entry name; must not contain spaces")

    unzip_parser = subparsers.add_parser("unzip", help="Extract a ZIP file")
    unzip_parser.add_argument("zip_file", help="ZIP file to extract")
    unzip_parser.add_argument("output_directory", help="Directory to extract into")

    return parser


def _init_logging(level_str: str) -> None:
    levels = {
        "critical": logging.CRITICAL,
        "error": logging.ERROR,
        "warn": logging.WARNING,
        "warning": logging.WARNING,
        "info": logging.INFO,
        "debug": logging.DEBUG,
    }
    level = levels[level_str]
    logging.basicConfig(
        level=level,
        format="[%(levelname)-8s] %(message)s",
    )


def _apply_overrides(
    config: BuildConfiguration, args: argparse.Namespace
) -> BuildConfiguration:
    if args.pipeline_always_signs is not None:
        config.pipeline_always_signs = args.pipeline_always_signs
    for arg_name in ["keystore", "keyalias", "keypass"]:
        value = getattr(args, arg_name)
        if value is not None:
            setattr(config, arg_name, value)
    config.unity = config.unity._replace(
        **{
            key: value
            for key, value in [
                ("path", args.unity),
                ("project_path", args.project_path),
                ("execute_method", args.execute_method),
            ]
            if value is not None
        }
    )
    return config


def validate_args(args: argparse.Namespace, config: BuildConfiguration) -> None:
    if not config.unity.path:
        raise argparse.ArgumentTypeError(
            "No Unity editor given. Pass --unity or set unity.path in the configuration."
        )
    if config.keystore:
        for arg_name in ["keyalias", "keypass"]:
            if getattr(config, arg_name) is None:
                raise argparse.ArgumentTypeError(
                    "A keystore was given but no --{} was provided.".format(arg_name)
                )


def run_build(args: argparse.Namespace) -> bool:
    config = _apply_overrides(BuildConfiguration.load(args.config), args)
    validate_args(args, config)

    if args.android_sdk_path:
        add_android_sdk_path(args.android_sdk_path)
    if args.apksigner_path:
        add_tool_override("apksigner", args.apksigner_path)

    unity = config.unity
    assert unity.path is not None
    pipeline = UnityBuildPipeline(
        unity.path,
        unity.project_path or os.path.dirname(os.path.abspath(args.config)),
        unity.execute_method,
    )
    builder = PlayInstantBuilder(
        config,
        pipeline,
        create_notifier(args.headless, config.config_path),
        ApkSigner(config.keystore, config.keyalias, config.keypass),
    )

    options = BuildOptions.DEVELOPMENT if args.development else BuildOptions.NONE
    request = builder.create_build_request(args.out, options)
    logging.debug("Build request: %s", request)
    return builder.build_and_sign(request)


def run_archive_command(args: argparse.Namespace) -> bool:
    if args.command == "zip":
        error = create_zip_file(args.zip_file, args.input_directory, args.input_file)
    else:
        error = unzip_file(args.zip_file, args.output_directory)
    if error is not None:
        logging.error("jar failed:\n%s", error)
        return False
    return True


def main(argv: typing.Optional[typing.List[str]] = None) -> int:
    args = arg_parser().parse_args(argv)
    _init_logging(args.log_level)

    try:
        if args.command == "build":
            success = run_build(args)
        else:
            success = run_archive_command(args)
    except (ConfigurationError, ToolNotFoundError, argparse.ArgumentTypeError) as e:
        logging.error("%s", e)
        return 1
    except ValueError as e:
        logging.error("Invalid argument: %s", e)
        return 1

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
