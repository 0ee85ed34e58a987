"""Console application: sets up the config file and runs the reader until the user quits."""

import logging
import os
import sys
from pathlib import Path
from typing import Callable, Optional

from pydantic import ValidationError

from mmr_reader.config import (
    CONFIG_VERSION,
    ReaderConfig,
    config_version_status,
    load_config,
    parse_ladder_url,
    resolve_paths,
    save_config_file,
    upgrade_config,
)
from mmr_reader.errors import ConfigError
from mmr_reader.reader import MmrReader

logger = logging.getLogger(__name__)

InputFn = Callable[[str], str]

LADDER_URL_HELP = """\
First we'll need the information for the ladder you want to get the MMR for.
Please enter the URL to the ladder you would like to monitor.
You can find this by doing the following:
  1) Navigate to starcraft2.com
  2) Log in to your Blizzard account
  3) Navigate to View Profile-->Ladders-->(Pick a Ladder). The ladders are listed under "CURRENT SEASON LEAGUES"
  4) Copy the URL of the page and paste it below.
        Example: https://starcraft2.com/en-us/profile/1/1/1986271/ladders?ladderId=274006
"""


def default_config_path() -> Path:
    """Config.json next to the entry script, unless MMR_READER_CONFIG says otherwise."""
    env_path = os.environ.get("MMR_READER_CONFIG")
    if env_path:
        return Path(env_path)
    return Path(sys.argv[0]).resolve().parent / "Config.json"


def prompt_choice(options: list, input_fn: InputFn = input) -> str:
    """Ask until the user types one of the options."""
    prompt = f"  ({'/'.join(options)}): "
    answer = None
    while answer not in options:
        answer = input_fn(prompt).strip()
    return answer


def prompt_required(label: str, input_fn: InputFn = input) -> str:
    answer = ""
    while not answer:
        print(f"Please enter your {label} (see README.md if you don't know what that is).")
        answer = input_fn(f"  ({label.replace(' ', '')}): ").strip()
    return answer


def run_create_config_flow(config_path: Path, input_fn: InputFn = input) -> bool:
    """
    Walk the user through creating a config file.

    Returns:
        True if a config file was written
    """
    print("You do not appear to have a config file at:")
    print(f"\t{config_path}")
    print()
    print("Would you like to create one?")
    if prompt_choice(["yes", "no"], input_fn) == "no":
        return False

    print()
    print(LADDER_URL_HELP)
    ladder = None
    while ladder is None:
        response = input_fn("  (enter a URL): ").strip()
        if response.lower() == "q":
            print("Exiting.")
            return False
        ladder = parse_ladder_url(response)
        if ladder is None:
            print("That URL is not valid. Make sure you get the URL of a specific ladder "
                  "and not your profile, or enter q to quit.")

    print("Great! That URL seems valid.")
    print()
    client_id = prompt_required("Client ID", input_fn)
    print()
    client_secret = prompt_required("Client Secret", input_fn)
    print()

    try:
        config = ReaderConfig(
            version=CONFIG_VERSION,
            client_id=client_id,
            client_secret=client_secret,
            **ladder
        )
    except ValidationError as e:
        print(f"Those settings are not valid: {e}")
        return False

    if not save_config_file(config, config_path):
        print("Uh oh, we were not able to save the config to:")
        print(f"\t{config_path}")
        print("Please check that is a valid path that can be written to and try again!")
        return False

    print("All set! You can check your settings at any time in:")
    print(f"\t{config_path}")
    print()
    return True


def run_config_flow(config_path: Path, input_fn: InputFn = input) -> Optional[ReaderConfig]:
    """
    Load the config file, creating or upgrading it with the user's help.

    Returns:
        The config to run with, paths made absolute, or None if the
        application should exit
    """
    config_path = Path(config_path)
    if not config_path.exists():
        if not run_create_config_flow(config_path, input_fn):
            return None

    try:
        config = load_config(config_path)
    except ConfigError as e:
        logger.error(str(e))
        print("There was a problem reading the config file. See Config.json.example for the correct format.")
        return None

    status = config_version_status(config)
    if status == "outdated":
        print("The specified config file is an older version. See Config.json.example for the current format.")
        print("Would you like to upgrade it to the new format? New settings will get default values.")
        if prompt_choice(["yes", "no"], input_fn) == "no":
            return None

        if save_config_file(upgrade_config(config), config_path):
            print("The config file has been updated. Please check that the settings are correct "
                  "and then restart. The path is:")
            print(f"\t{config_path}")
        else:
            print("There was a problem saving the config file. Please update it manually.")
        return None

    if status == "too_new":
        print("The specified config file is for a newer version of this reader. Please update, "
              f"or downgrade your config file to version {CONFIG_VERSION}.")
        return None

    config = resolve_paths(config, config_path.parent)
    print(f"Using the following config file: {config_path}")
    print(f"Outputting MMR to: {config.mmr_file_path}")
    print()
    return config


def wait_for_quit(input_fn: InputFn = input):
    """Block until the user enters q (or stdin closes)."""
    while True:
        try:
            entry = input_fn("")
        except (EOFError, KeyboardInterrupt):
            return
        if entry.strip().lower() == "q":
            return
        print("Unknown command. Enter Q to quit.")


def run(config_path: Optional[Path] = None, input_fn: InputFn = input) -> int:
    """Run the application. Returns a process exit code."""
    config = run_config_flow(config_path or default_config_path(), input_fn)
    if config is None:
        return 1

    reader = MmrReader(config)
    reader.start()
    print("Running. Enter Q to quit.")
    try:
        wait_for_quit(input_fn)
    finally:
        print("Stopping...")
        reader.request_stop()

    print("Done. Exiting.")
    return 0
