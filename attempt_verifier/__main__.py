"""Allow ``python -m attempt_verifier``."""

from .main import main

raise SystemExit(main())
