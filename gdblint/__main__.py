"""Allows ``python -m gdblint``."""

from gdblint.main import main

if __name__ == "__main__":
    raise SystemExit(main())
