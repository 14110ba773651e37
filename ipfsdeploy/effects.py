"""Clipboard and browser side effects run after a successful publish."""

import platform
import shutil
import subprocess
import webbrowser

LINUX_CLIPBOARD_COMMANDS = [
    ["wl-copy"],
    ["xclip", "-selection", "clipboard"],
    ["xsel", "--clipboard", "--input"],
]


def _clipboard_commands() -> list[list[str]]:
    system = platform.system()
    if system == "Darwin":
        return [["pbcopy"]]
    if system == "Windows":
        return [["clip"]]
    return [cmd for cmd in LINUX_CLIPBOARD_COMMANDS if shutil.which(cmd[0])]


def copy_to_clipboard(text: str) -> bool:
    """Copy text with the first clipboard tool that works. Returns True on success."""
    for cmd in _clipboard_commands():
        try:
            subprocess.run(cmd, input=text, text=True, check=True, timeout=5)
            return True
        except (
            subprocess.CalledProcessError,
            subprocess.TimeoutExpired,
            FileNotFoundError,
        ):
            continue
    return False


def open_url(url: str) -> bool:
    return webbrowser.open(url)
