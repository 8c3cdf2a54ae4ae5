import sys

from quake_watch.main import main


sys.exit(main())
