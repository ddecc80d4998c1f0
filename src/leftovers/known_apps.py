"""Built-in table of well-known applications.

Each record uses the same shape as external descriptor files. Path
templates may use ``~``, environment variables and the ``{config}``,
``{cache}``, ``{data}`` and ``{home}`` placeholders.
"""

from __future__ import annotations

from typing import Any

KNOWN_APPS: list[dict[str, Any]] = [
    {
        "name": "firefox",
        "config": ["~/.mozilla/firefox"],
        "cache": ["{cache}/mozilla/firefox"],
    },
    {
        "name": "thunderbird",
        "config": ["~/.thunderbird"],
        "cache": ["{cache}/thunderbird"],
    },
    {
        "name": "gimp",
        "config": ["{config}/GIMP"],
        "cache": ["{cache}/gimp"],
    },
    {
        "name": "inkscape",
        "config": ["{config}/inkscape"],
        "cache": ["{cache}/inkscape"],
    },
    {
        "name": "vlc",
        "config": ["{config}/vlc"],
        "cache": ["{cache}/vlc"],
        "local_data": ["{data}/vlc"],
    },
    {
        "name": "audacity",
        "config": ["{config}/audacity", "~/.audacity-data"],
        "local_data": ["{data}/audacity"],
    },
    {
        "name": "darktable",
        "config": ["{config}/darktable"],
        "cache": ["{cache}/darktable"],
    },
    {
        "name": "transmission-gtk",
        "config": ["{config}/transmission"],
        "cache": ["{cache}/transmission"],
    },
    {
        "name": "spotify",
        "config": ["{config}/spotify"],
        "cache": ["{cache}/spotify"],
    },
]
