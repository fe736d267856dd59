"""Allow ``python -m relaybot``."""

from relaybot.cli.cli import main

if __name__ == "__main__":
    main()
