"""Allow ``python -m knowme.cli`` execution."""

from knowme.cli.process import main

main()
