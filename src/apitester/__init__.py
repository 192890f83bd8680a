"""apitester — command-line tester for native shared-library APIs.

Loads a platform shared library through ``ctypes`` and exercises its
exported functions from the command line.
"""

from apitester.version import __version__

__all__: list[str] = ["__version__"]
