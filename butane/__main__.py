"""butane/__main__.py – ``python -m butane``."""

from butane.main import main

if __name__ == "__main__":
    raise SystemExit(main())
