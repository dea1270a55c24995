"""Package entry point for ``python -m cinematic_transcript``.

HOW: Delegates to the CLI's main() function.
"""

from cinematic_transcript.cli import main

if __name__ == "__main__":
    main()
