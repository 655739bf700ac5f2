"""Entry point for ``python -m chile_payroll``."""

import sys

from chile_payroll.cli import main

if __name__ == "__main__":
    sys.exit(main())
