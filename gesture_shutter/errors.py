"""
Exceptions raised by the capture controller.
"""


class GestureShutterError(RuntimeError):
    """Base class for controller errors."""


class ModelLoadError(GestureShutterError):
    """The hand-landmark model could not be loaded. Fatal for the session."""


class CameraAccessError(GestureShutterError):
    """The camera could not be opened or stopped delivering frames. Fatal for the session."""


class ConfigError(GestureShutterError, ValueError):
    """Configuration file is missing a key or holds an invalid value."""
