import sys

from gridshot.cli import main

sys.exit(main())
