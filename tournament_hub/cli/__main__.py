import sys

from tournament_hub.cli import main

sys.exit(main())
