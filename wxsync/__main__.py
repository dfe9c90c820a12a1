import sys

from wxsync.cli import main

sys.exit(main())
