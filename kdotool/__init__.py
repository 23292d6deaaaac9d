"""kdotool - xdotool-like window control for KDE Plasma.

Compiles a chain of window directives into a KWin script, loads it into
KWin over D-Bus and relays whatever the script reports back.
"""
