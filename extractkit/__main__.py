import sys

from extractkit.extraction.cli import main

sys.exit(main())
