"""Process properties exposed as a config layer."""

from __future__ import annotations

import os
import platform
import sys

# Origin description carried by every value of the properties layer.
SYSTEM_PROPERTIES_ORIGIN = "system properties"


def system_properties() -> dict[str, str]:
    """Return the process properties as dotted keys.

    Names follow the ``java.lang.System`` property convention so configs
    written for JVM tooling can reference them (``${user.home}``).
    """
    return {
        "os.name": platform.system(),
        "os.arch": platform.machine(),
        "os.version": platform.release(),
        "python.version": platform.python_version(),
        "python.implementation": platform.python_implementation(),
        "python.executable": sys.executable or "",
        "user.dir": os.getcwd(),
        "user.home": os.path.expanduser("~"),
        "file.encoding": sys.getfilesystemencoding(),
        "file.separator": os.sep,
        "path.separator": os.pathsep,
        "line.separator": os.linesep,
    }
