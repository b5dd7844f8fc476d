"""globconf — shared configuration for a System of build projects.

A provider file declares a System name and its variables and may install
itself into the user package registry. Consumer projects declare the same
System name and read the variables back without copying them around.
"""

__version__ = "0.3.0"

from globconf.context import Context, ExecutionMode, InvocationMode, Switches
from globconf.protocol import Session

__all__ = [
    "Context",
    "ExecutionMode",
    "InvocationMode",
    "Session",
    "Switches",
    "__version__",
]
