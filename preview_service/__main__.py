"""Allow running the preview server with `python -m preview_service`."""

import sys

from .cli import main

sys.exit(main())
