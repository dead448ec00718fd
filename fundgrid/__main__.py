# __main__.py
import sys

from fundgrid.main import main

if __name__ == "__main__":
    sys.exit(main())
