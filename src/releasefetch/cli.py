# src/releasefetch/cli.py

import argparse
import importlib.metadata
import json
import os
import sys
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from releasefetch import log_utils
from releasefetch.constants import APP_NAME, GITHUB_OUTPUT_ENV_VAR
from releasefetch.download.models import DownloadOutcome
from releasefetch.download.orchestrator import run_download
from releasefetch.exceptions import ReleaseFetchError
from releasefetch.settings import build_settings


def get_version() -> str:
    """Return the installed releasefetch version, or "unknown" when not installed."""
    try:
        return importlib.metadata.version(APP_NAME)
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def _add_download_arguments(download_parser: argparse.ArgumentParser) -> None:
    download_parser.add_argument(
        "repository",
        nargs="?",
        default=None,
        help="Source repository in the form owner/repo",
    )
    download_parser.add_argument(
        "--config",
        "-c",
        dest="config_path",
        default=None,
        help="YAML settings file (defaults to the per-user config file if present)",
    )

    selection = download_parser.add_argument_group("release selection")
    selection.add_argument(
        "--latest",
        action="store_true",
        default=None,
        help="Download the latest release (combine with the filters below)",
    )
    selection.add_argument("--tag", default=None, help="Download the release for this tag")
    selection.add_argument(
        "--id", dest="release_id", default=None, help="Download the release with this ID"
    )
    selection.add_argument(
        "--prerelease",
        action="store_true",
        default=None,
        help="With --latest, pick the newest prerelease instead of a release",
    )
    selection.add_argument(
        "--branch",
        default=None,
        help="With --latest, only consider tags containing '.<branch>.'",
    )
    selection.add_argument(
        "--tag-prefix",
        dest="tag_prefix",
        default=None,
        help="With --latest, only consider tags starting with this prefix",
    )

    assets = download_parser.add_argument_group("asset selection")
    assets.add_argument(
        "--file",
        "-f",
        dest="file_name",
        default=None,
        help="Glob pattern of release assets to download (e.g. '*.zip')",
    )
    assets.add_argument(
        "--tarball", action="store_true", default=None, help="Also download the source tarball"
    )
    assets.add_argument(
        "--zipball", action="store_true", default=None, help="Also download the source zipball"
    )

    output = download_parser.add_argument_group("output")
    output.add_argument(
        "--out-dir", "-o", dest="out_dir", default=None, help="Directory to download into"
    )
    output.add_argument(
        "--extract",
        dest="extract_assets",
        action="store_true",
        default=None,
        help="Extract downloaded zip and tar archives into the output directory",
    )
    output.add_argument(
        "--output-format",
        choices=("text", "json"),
        default="text",
        help="How to print the resulting tag name, release name and files",
    )

    connection = download_parser.add_argument_group("connection")
    connection.add_argument(
        "--api-url", dest="api_url", default=None, help="GitHub API root URL"
    )
    connection.add_argument(
        "--timeout", type=float, default=None, help="Per-request timeout in seconds"
    )

    logging_group = download_parser.add_argument_group("logging")
    logging_group.add_argument(
        "--log-level", dest="log_level", default=None, help="Console log level (e.g. DEBUG)"
    )
    logging_group.add_argument(
        "--log-dir",
        dest="log_dir",
        default=None,
        help="Also write a rotating log file into this directory",
    )


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Map parsed download arguments onto DownloadSettings field overrides.

    Flags left unset stay None so they do not mask values from the config file.
    """
    overrides: Dict[str, Any] = {
        "repo_path": args.repository,
        "latest": args.latest,
        "tag": args.tag,
        "release_id": args.release_id,
        "prerelease": args.prerelease,
        "tag_prefix": args.tag_prefix,
        "file_name": args.file_name,
        "tarball": args.tarball,
        "zipball": args.zipball,
        "out_dir": args.out_dir,
        "extract_assets": args.extract_assets,
        "api_url": args.api_url,
        "timeout": args.timeout,
        "log_level": args.log_level,
    }
    if args.branch:
        overrides["branch"] = args.branch
        overrides["filter_by_branch"] = True
    return overrides


def format_outcome(outcome: DownloadOutcome, output_format: str = "text") -> str:
    """
    Render a download outcome for stdout.

    Parameters:
        outcome (DownloadOutcome): Result of the run.
        output_format (str): "json" for a JSON object, anything else for `key: value` lines.
    """
    outputs = outcome.as_outputs()
    if output_format == "json":
        return json.dumps(outputs, indent=2)

    lines: List[str] = [
        f"tag_name: {outputs['tag_name']}",
        f"release_name: {outputs['release_name']}",
        "downloaded_files:",
    ]
    lines.extend(f"  {path}" for path in outputs["downloaded_files"])
    return "\n".join(lines)


def _github_output_entry(name: str, value: str) -> str:
    """Format one output; values spanning lines use the `name<<DELIMITER` form."""
    if "\n" not in value and "\r" not in value:
        return f"{name}={value}\n"
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    return f"{name}<<{delimiter}\n{value}\n{delimiter}\n"


def write_github_outputs(outcome: DownloadOutcome, output_file: Optional[str]) -> bool:
    """
    Append the outcome as `key=value` lines to a GitHub Actions output file.

    `downloaded_files` is written as a JSON array. Values containing line breaks
    are written with a random heredoc delimiter.

    Returns:
        bool: `True` if the outputs were written, `False` when no file was given or writing failed.
    """
    if not output_file:
        return False

    outputs = outcome.as_outputs()
    try:
        with open(output_file, "a", encoding="utf-8") as f:
            f.write(_github_output_entry("tag_name", outputs["tag_name"]))
            f.write(_github_output_entry("release_name", outputs["release_name"]))
            f.write(
                _github_output_entry(
                    "downloaded_files", json.dumps(outputs["downloaded_files"])
                )
            )
    except OSError as e:
        log_utils.logger.error(f"Failed to write outputs to {output_file}: {e}")
        return False
    return True


def _handle_download_command(args: argparse.Namespace) -> int:
    """
    Run the download subcommand.

    Returns:
        int: Process exit status, 0 on success and 1 on any releasefetch error.
    """
    if args.log_level:
        log_utils.set_log_level(args.log_level)

    try:
        settings = build_settings(args.config_path, _cli_overrides(args))
        if settings.log_level and not args.log_level:
            log_utils.set_log_level(settings.log_level)
        if args.log_dir:
            log_utils.add_file_logging(Path(args.log_dir), settings.log_level or "INFO")

        outcome = run_download(settings)
    except ReleaseFetchError as e:
        log_utils.logger.error(str(e))
        return 1

    print(format_outcome(outcome, args.output_format))
    write_github_outputs(outcome, os.environ.get(GITHUB_OUTPUT_ENV_VAR))
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the releasefetch command-line interface.

    Parses command-line arguments and dispatches the `download` and `version`
    subcommands; exits the process with the subcommand's status.
    """
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="releasefetch - download assets of a GitHub release",
    )
    subparsers = parser.add_subparsers(dest="command")

    download_parser = subparsers.add_parser(
        "download", help="Resolve a release and download its assets"
    )
    _add_download_arguments(download_parser)

    subparsers.add_parser("version", help="Display releasefetch version")

    args = parser.parse_args(argv)

    if args.command == "download":
        sys.exit(_handle_download_command(args))
    elif args.command == "version":
        print(f"{APP_NAME} v{get_version()}")
        sys.exit(0)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
