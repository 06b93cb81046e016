import sys

from staticserver.app.main import main

if __name__ == "__main__":
    sys.exit(main())
