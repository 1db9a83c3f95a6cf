"""Run the module in the current directory: ``python -m dagmod [entry_module]``."""

import sys

from dagmod.dispatcher import main

if __name__ == "__main__":
    sys.exit(main())
