import sys

from risr.cli import main

sys.exit(main())
