"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/errors.py
Error taxonomy of the duplicate search engine.

Fatal errors (abort the run):
- UnsupportedFileType: the OS reported an entry type outside the known set
- FilterLaunchError: a configured filter command could not be started
- InvalidChoice: the interactive collaborator returned an unknown option

Recovered errors (reported, never abort the resolution loop):
- VanishedFile: an entry disappeared between the scan and a re-read
"""


class DuptreeError(Exception):
    """Base class for all errors raised by duptree."""


class UnsupportedFileType(DuptreeError):
    def __init__(self, path: str, mode: int):
        self.path = path
        self.mode = mode
        super().__init__(f"Unsupported file type (mode {oct(mode)}): {path}")


class FilterLaunchError(DuptreeError):
    def __init__(self, command: str, reason: Exception):
        self.command = command
        self.reason = reason
        super().__init__(f"Failed to launch filter '{command}': {reason}")


class VanishedFile(DuptreeError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f'"{path}" no longer exists')


class InvalidChoice(DuptreeError):
    def __init__(self, choice: str, options):
        self.choice = choice
        self.options = list(options)
        super().__init__(f"Invalid choice {choice!r}, expected one of {self.options}")
