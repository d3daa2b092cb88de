import sys

from recordapi.server import main

sys.exit(main())
