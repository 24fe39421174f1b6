import sys

from orbitmag.main import main

sys.exit(main())
