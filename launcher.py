"""
Static File Server Launcher.
Entry point for running the server from a source checkout.
"""

import os
import sys

sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from staticserver.app.main import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
