"""XDG Base Directory paths for capserve configuration."""

import os
from pathlib import Path


def get_xdg_config_home() -> Path:
    """Get the XDG config home directory.

    Returns:
        Path to XDG_CONFIG_HOME, defaults to ~/.config
    """
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def get_config_dir(create: bool = True) -> Path:
    """Get the capserve configuration directory.

    Args:
        create: Create the directory if it doesn't exist

    Returns:
        Path to $XDG_CONFIG_HOME/capserve
    """
    config_dir = get_xdg_config_home() / "capserve"
    if create:
        config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_prompts_dir(create: bool = True) -> Path:
    """Get the directory for user-defined prompt definitions.

    Args:
        create: Create the directory if it doesn't exist

    Returns:
        Path to $XDG_CONFIG_HOME/capserve/prompts
    """
    prompts_dir = get_config_dir(create) / "prompts"
    if create:
        prompts_dir.mkdir(parents=True, exist_ok=True)
    return prompts_dir
