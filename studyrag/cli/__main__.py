"""Allow ``python -m studyrag.cli`` execution."""

import sys

from studyrag.cli.commands import main

sys.exit(main())
