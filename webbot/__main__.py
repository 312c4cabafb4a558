"""Allow ``python -m webbot``."""

import sys

from .cli import main

sys.exit(main())
