"""Shared constants for kdotool."""

__all__ = [
    "CALLBACK_INTERFACE",
    "CALLBACK_PATH",
    "CALLBACK_TIMEOUT",
    "CLIENT_BUS_NAME_PREFIX",
    "KDE_SESSION_VERSION_VAR",
    "KWIN_SCRIPT_INTERFACE",
    "KWIN_SCRIPTING_INTERFACE",
    "KWIN_SCRIPTING_PATH",
    "KWIN_SERVICE",
    "LISTENER_POLL_INTERVAL",
    "REPLY_TIMEOUT",
    "SCRIPT_FILE_PREFIX",
    "SCRIPT_FILE_SUFFIX",
]

# KWin scripting host
KWIN_SERVICE = "org.kde.KWin"
KWIN_SCRIPTING_PATH = "/Scripting"
KWIN_SCRIPTING_INTERFACE = "org.kde.kwin.Scripting"
KWIN_SCRIPT_INTERFACE = "org.kde.kwin.Script"

# Set to "5" in Plasma 5 sessions, which use the legacy script object paths
KDE_SESSION_VERSION_VAR = "KDE_SESSION_VERSION"

# Callback channel, addressed by the generated script through callDBus()
CLIENT_BUS_NAME_PREFIX = "org.kde.kdotool.pid"
CALLBACK_PATH = "/"
CALLBACK_INTERFACE = "org.kde.kdotool.Callback"

# Timeouts (seconds)
REPLY_TIMEOUT = 5.0
CALLBACK_TIMEOUT = 5.0
LISTENER_POLL_INTERVAL = 1.0

SCRIPT_FILE_PREFIX = "kdotool-"
SCRIPT_FILE_SUFFIX = ".js"
