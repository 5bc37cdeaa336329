import sys

from glsi.api.cli import main

sys.exit(main())
