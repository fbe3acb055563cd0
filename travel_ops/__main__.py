"""Entry point for ``python -m travel_ops``."""

from .cli import main

raise SystemExit(main())
