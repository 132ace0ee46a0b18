"""``python -m src.echo_tasks`` runs the same CLI as ``echo-tasks``."""

import sys

from .cli import main

sys.exit(main())
