"""Allow ``python -m wifiap``; the sudo re-execution relies on it."""

from wifiap.cli import main

if __name__ == "__main__":
    main()
