"""Allow running as `python -m urlgrep`."""

from .cli import main

raise SystemExit(main())
